"""AuthN/AuthZ helpers for authgate.

Credential scheme
-----------------
``Authorization: Bearer <jwt>``
    HS256-signed JWT issued by ``/api/auth/signup``, ``/api/auth/login`` and
    ``/api/auth/password``.  Claims: ``sub`` (user id), ``iat``, ``exp``.

A token stops being accepted when it expires, when its user disappears or is
deactivated, or when the user changes their password after it was issued.

Roles (checked with ``restrict_to``)
------------------------------------
``user``, ``editor``, ``admin``.  Membership is exact: ``restrict_to("admin")``
does not admit editors.
"""

from authgate.auth.deps import protect, restrict_to
from authgate.auth.tokens import sign_token

__all__ = ["protect", "restrict_to", "sign_token"]

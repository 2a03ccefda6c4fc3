"""Tests for token issuance, verification and header parsing."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from authgate.auth.tokens import decode_token, extract_bearer, parse_duration, sign_token
from authgate.config import settings


class TestParseDuration:
    @pytest.mark.parametrize(
        "value, expected",
        [
            ("90d", timedelta(days=90)),
            ("15m", timedelta(minutes=15)),
            ("12h", timedelta(hours=12)),
            ("45s", timedelta(seconds=45)),
            ("2w", timedelta(weeks=2)),
            ("3600", timedelta(hours=1)),
            (3600, timedelta(hours=1)),
            (" 1D ", timedelta(days=1)),
        ],
    )
    def test_valid(self, value, expected):
        assert parse_duration(value) == expected

    @pytest.mark.parametrize("value", ["", "abc", "10y", "-5m", "1.5h", "0", 0, -1])
    def test_invalid(self, value):
        with pytest.raises(ValueError):
            parse_duration(value)


class TestSignAndDecode:
    def test_round_trip_claims(self, monkeypatch):
        monkeypatch.setattr(settings, "JWT_EXPIRES_IN", "2h")
        now = datetime.now(timezone.utc).replace(microsecond=0)
        token = sign_token("user-123", now=now)
        payload = decode_token(token)
        assert payload["sub"] == "user-123"
        assert payload["iat"] == int(now.timestamp())
        assert payload["exp"] - payload["iat"] == 2 * 3600

    def test_expired(self, monkeypatch):
        monkeypatch.setattr(settings, "JWT_EXPIRES_IN", "1m")
        token = sign_token("user-123", now=datetime.now(timezone.utc) - timedelta(minutes=5))
        with pytest.raises(jwt.ExpiredSignatureError):
            decode_token(token)

    def test_wrong_secret(self):
        token = sign_token("user-123")
        with pytest.raises(jwt.InvalidSignatureError):
            jwt.decode(token, "a-completely-different-secret-value", algorithms=["HS256"])

    def test_missing_subject_rejected(self):
        now = int(datetime.now(timezone.utc).timestamp())
        token = jwt.encode(
            {"iat": now, "exp": now + 60}, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM
        )
        with pytest.raises(jwt.MissingRequiredClaimError):
            decode_token(token)

    def test_algorithm_none_rejected(self):
        now = int(datetime.now(timezone.utc).timestamp())
        token = jwt.encode({"sub": "user-123", "iat": now, "exp": now + 60}, None, algorithm="none")
        with pytest.raises(jwt.InvalidTokenError):
            decode_token(token)


class TestExtractBearer:
    def test_bearer(self):
        assert extract_bearer("Bearer abc.def.ghi") == "abc.def.ghi"

    @pytest.mark.parametrize("header", [None, "", "Bearer", "Bearer   ", "Basic dXNlcjpwdw==", "bearer abc"])
    def test_rejected(self, header):
        assert extract_bearer(header) is None

"""Tests for webhook HMAC signatures."""

import hashlib
import hmac

from fairlx.webhooks import compute_signature, verify_signature


class TestComputeSignature:
    def test_matches_hmac_sha256_hex(self):
        body = '{"event":"TASK_CREATED","projectId":"prj_1"}'
        expected = hmac.new(b"topsecret", body.encode(), hashlib.sha256).hexdigest()

        assert compute_signature(body, "topsecret") == expected

    def test_is_lowercase_hex_of_fixed_length(self):
        signature = compute_signature("{}", "key")
        assert len(signature) == 64
        assert signature == signature.lower()
        int(signature, 16)

    def test_depends_on_secret_and_body(self):
        assert compute_signature("{}", "a") != compute_signature("{}", "b")
        assert compute_signature('{"a":1}', "k") != compute_signature('{"a":2}', "k")

    def test_unicode_body(self):
        body = '{"title":"Überprüfung ✓"}'
        expected = hmac.new(b"k", body.encode("utf-8"), hashlib.sha256).hexdigest()
        assert compute_signature(body, "k") == expected


class TestVerifySignature:
    def test_valid(self):
        body = '{"x":1}'
        assert verify_signature(body, "k", compute_signature(body, "k"))

    def test_tolerates_case_and_whitespace(self):
        body = '{"x":1}'
        signature = f"  {compute_signature(body, 'k').upper()} "
        assert verify_signature(body, "k", signature)

    def test_wrong_secret(self):
        body = '{"x":1}'
        assert not verify_signature(body, "other", compute_signature(body, "k"))

    def test_tampered_body(self):
        signature = compute_signature('{"x":1}', "k")
        assert not verify_signature('{"x":2}', "k", signature)

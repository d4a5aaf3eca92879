"""Unit tests for bcrypt password hashing."""

from common.auth import PasswordHasher


class TestPasswordHasher:
    def test_hash_verifies_against_original(self, hasher):
        digest = hasher.hash("Passw0rd!")

        assert digest != "Passw0rd!"
        assert hasher.verify("Passw0rd!", digest) is True

    def test_wrong_password_fails(self, hasher):
        digest = hasher.hash("Passw0rd!")

        assert hasher.verify("passw0rd!", digest) is False

    def test_salts_differ_between_hashes(self, hasher):
        assert hasher.hash("Passw0rd!") != hasher.hash("Passw0rd!")

    def test_missing_digest_fails(self, hasher):
        assert hasher.verify("Passw0rd!", None) is False
        assert hasher.verify("Passw0rd!", "") is False

    def test_malformed_digest_fails(self, hasher):
        assert hasher.verify("Passw0rd!", "not-a-bcrypt-hash") is False

    def test_cost_factor_is_encoded_in_digest(self):
        digest = PasswordHasher(rounds=5).hash("Passw0rd!")

        assert digest.startswith("$2b$05$")

    def test_default_cost_factor(self):
        assert PasswordHasher().rounds == 10

    def test_multibyte_password_past_bcrypt_limit(self, hasher):
        password = "Aa1" + "\U0001F600" * 27
        assert len(password.encode("utf-8")) > 72

        digest = hasher.hash(password)

        assert hasher.verify(password, digest) is True
        assert hasher.verify(password[:-1], digest) is False

    def test_long_passwords_sharing_a_prefix_differ(self, hasher):
        prefix = "é" * 40
        digest = hasher.hash(prefix + "A")

        assert hasher.verify(prefix + "B", digest) is False

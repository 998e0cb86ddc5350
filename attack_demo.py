"""
otpvault - Attack Demonstration

Run: python attack_demo.py

What it shows (and why attacks fail):
1) A different RSA key cannot decrypt the vault.
2) Moving a row to another account breaks the OAEP label binding.
3) Swapping ciphertexts between two rows breaks the label binding too.
4) Ciphertext tampering is detected by OAEP.
5) Known limitation: ("ab", "c") and ("a", "bc") share a label.
"""

import os
import sqlite3
import tempfile

from cryptography.hazmat.primitives.asymmetric import rsa

from otpvault import crypto
from otpvault.store import SecretStore
from otpvault.vault import Vault


LINE = "=" * 70


def section(title: str):
    print(f"\n{LINE}\n{title}\n{LINE}")


def new_key() -> crypto.PrivateKey:
    return crypto.PrivateKey.from_key(
        rsa.generate_private_key(public_exponent=65537, key_size=2048)
    )


def show_codes(vault: Vault):
    for r in vault.codes():
        shown = r.timecode.code if r.ok else f"error: {r.error}"
        print(f"  {r.account:<10} {r.issuer:<10} {shown}")


def tamper(db_path: str, sql: str, params: tuple = ()):
    conn = sqlite3.connect(db_path)
    conn.execute(sql, params)
    conn.commit()
    conn.close()


def main():
    # Prepare a fresh vault
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as tmp:
        db_path = tmp.name

    key = new_key()
    store = SecretStore(db_path)
    store.initialize()
    vault = Vault(store, key)
    vault.store_secret("alice", "github", "JBSWY3DPEHPK3PXP")
    vault.store_secret("bob", "gitlab", "GEZDGNBVGY3TQOJQGEZDGNBVGY3TQOJQ")

    print("Vault contents:")
    show_codes(vault)

    # 1) Wrong key
    section("Attack 1: Decrypting with a different RSA key")
    show_codes(Vault(store, new_key()))
    print("Expected failure: every record reports 'decryption failed'")

    # 2) Row reattribution
    section("Attack 2: Reattributing alice's secret to mallory")
    tamper(db_path, "UPDATE otps SET account = 'mallory' WHERE account = 'alice'")
    show_codes(vault)
    print("Expected failure: label mismatch, the moved row does not decrypt")
    tamper(db_path, "UPDATE otps SET account = 'alice' WHERE account = 'mallory'")

    # 3) Swap ciphertexts
    section("Attack 3: Swapping ciphertexts between rows")
    a = store.find("alice", "github").ciphertext
    b = store.find("bob", "gitlab").ciphertext
    tamper(db_path, "UPDATE otps SET password = ? WHERE account = 'alice'", (b,))
    tamper(db_path, "UPDATE otps SET password = ? WHERE account = 'bob'", (a,))
    show_codes(vault)
    print("Expected failure: both rows fail, the listing still completes")
    vault.store_secret("alice", "github", "JBSWY3DPEHPK3PXP")
    vault.store_secret("bob", "gitlab", "GEZDGNBVGY3TQOJQGEZDGNBVGY3TQOJQ")

    # 4) Bit flip
    section("Attack 4: Flipping one ciphertext bit")
    ct = bytearray(store.find("alice", "github").ciphertext)
    ct[-1] ^= 1
    tamper(db_path, "UPDATE otps SET password = ? WHERE account = 'alice'", (bytes(ct),))
    show_codes(vault)
    print("Expected failure: OAEP padding check rejects the modified block")

    # 5) Label ambiguity
    section("Known limitation: label concatenation")
    print(f"  label('ab', 'c') = {crypto.crypt_label('ab', 'c')!r}")
    print(f"  label('a', 'bc') = {crypto.crypt_label('a', 'bc')!r}")
    ct = crypto.encrypt_secret(key, b"JBSWY3DPEHPK3PXP", "ab", "c")
    pt = crypto.decrypt_secret(key, ct, "a", "bc")
    print(f"  ciphertext for ('ab','c') decrypts as ('a','bc'): {pt == b'JBSWY3DPEHPK3PXP'}")
    print("  Kept for compatibility with existing databases.")

    # Cleanup
    store.close()
    if os.path.exists(db_path):
        os.unlink(db_path)
    print("\nDemo complete. All showcased attacks failed as expected.")


if __name__ == "__main__":
    main()

"""
otpvault - One-Time Password Vault

Keeps TOTP secrets in a SQLite file, each one encrypted with the RSA key you
already have (usually ~/.ssh/id_rsa), and shows the current codes on demand.

Key Features:
- RSA-OAEP (SHA-256) encryption, bound to the record's account and issuer
- RFC 6238 codes (6 digits, 30 second steps)
- One broken record never hides the others in a listing
- QR export for moving secrets to a phone

Components:
- crypto.py: Key loading and label-bound encryption
- totp.py: Time-based code generation
- store.py: SQLite table of encrypted secrets
- vault.py: Record flow used by every front end
- qr.py: otpauth:// URIs and QR images
- cli.py: Command-line interface (argparse)
- web.py: Read-only HTTP page (Flask)

Usage:
    otp init
    otp add JBSWY3DPEHPK3PXP github alice
    otp get
    otp get github
    otp rm github alice
"""

__version__ = "1.0.0"

"""
otpvault - QR Export

Renders otpauth:// enrollment URIs as PNG images so a stored secret can be
moved to a phone authenticator app.
"""

import os

import pyotp
import qrcode
from qrcode.constants import ERROR_CORRECT_H

from .errors import CodeGenerationError


def otpauth_uri(issuer: str, account: str, secret: str) -> str:
    """
    Key URI understood by authenticator apps.

    otpauth://totp/<issuer>:<account>?secret=<secret>&issuer=<issuer>

    Raises:
        CodeGenerationError: pyotp rejects the issuer or account name
    """
    try:
        return pyotp.TOTP(secret, name=account, issuer=issuer).provisioning_uri()
    except ValueError as e:
        raise CodeGenerationError(f"cannot build otpauth uri: {e}") from e


def qr_filename(issuer: str, account: str) -> str:
    """File name for an exported code, path separators replaced."""
    name = f"otp-qr-{issuer}-{account}.png"
    return name.replace(os.sep, "_").replace("/", "_")


def write_qr(issuer: str, account: str, secret: str, output_dir: str = ".") -> str:
    """
    Write the enrollment QR code for one secret.

    Args:
        issuer: Issuer name
        account: Account name
        secret: Plaintext Base32 secret (only ever written into the image)
        output_dir: Directory for the PNG file

    Returns:
        Path of the written file

    Raises:
        OSError: file cannot be written
        qrcode.exceptions.DataOverflowError: URI too long for a QR code
    """
    qr = qrcode.QRCode(error_correction=ERROR_CORRECT_H)
    qr.add_data(otpauth_uri(issuer, account, secret))
    qr.make(fit=True)
    img = qr.make_image()

    path = os.path.join(output_dir, qr_filename(issuer, account))
    img.save(path)
    return path

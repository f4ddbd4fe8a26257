"""
OTP Code Generation
===================
Secure random numeric codes.
"""

import secrets


def generate_otp(length: int = 6) -> str:
    """
    Generate a secure random numeric OTP.

    The code is drawn uniformly from [10^(length-1), 10^length - 1], so it
    always has exactly ``length`` digits and never starts with 0.

    Args:
        length: Number of digits (at least 1)

    Returns:
        OTP string

    Raises:
        ValueError: If length is less than 1
    """
    if length < 1:
        raise ValueError(f"OTP length must be at least 1, got {length}")

    min_value = 10 ** (length - 1)
    max_value = 10 ** length - 1
    otp = min_value + secrets.randbelow(max_value - min_value + 1)
    return str(otp)

"""Input validation for manga-deployments library."""

from typing import Union

from eth_utils import is_address, is_checksum_address, to_checksum_address

from .exceptions import ValidationError


def validate_address(value: str, label: str = "address") -> str:
    """
    Validate a hex address.

    Mixed-case input must carry a valid EIP-55 checksum.

    Args:
        value: Candidate address
        label: Name used in the error message

    Returns:
        Checksummed address

    Raises:
        ValidationError: If the value is not a well-formed address
    """
    if not isinstance(value, str) or not is_address(value):
        raise ValidationError(f"Invalid {label}: {value!r}")
    digits = value[2:] if value[:2].lower() == "0x" else value
    if digits != digits.lower() and digits != digits.upper() and not is_checksum_address(value):
        raise ValidationError(f"Invalid {label}: {value!r} has a bad EIP-55 checksum")
    return to_checksum_address(value)


def validate_token_id(value: Union[str, int], label: str = "token id") -> int:
    """
    Validate a positive integer identifier.

    Args:
        value: Decimal string or int

    Returns:
        The identifier as int

    Raises:
        ValidationError: If the value is not numeric or not positive
    """
    if isinstance(value, bool):
        raise ValidationError(f"Invalid {label}: {value!r}")
    if isinstance(value, int):
        number = value
    else:
        text = str(value).strip()
        if not text.isdecimal():
            raise ValidationError(f"Invalid {label}: {value!r} is not a positive integer")
        number = int(text)

    if number <= 0:
        raise ValidationError(f"Invalid {label}: {value!r} must be positive")
    return number

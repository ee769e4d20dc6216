import secrets
import datetime


def generate_otp(length: int = 6) -> str:
    """
    Generates a cryptographically secure numeric OTP of a given length.

    Args:
        length (int): The length of the OTP.

    Returns:
        str: A zero-padded OTP as a string.
    """
    otp = secrets.randbelow(10**length)
    return str(otp).zfill(length)


def get_otp_expiry(minutes: int) -> datetime.datetime:
    """
    Returns the UTC expiry datetime for an OTP after a number of minutes.
    """
    return datetime.datetime.now(datetime.timezone.utc) + datetime.timedelta(minutes=minutes)


def is_expired(expires_at: datetime.datetime) -> bool:
    # Some drivers hand back naive datetimes; those are stored as UTC.
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=datetime.timezone.utc)
    return datetime.datetime.now(datetime.timezone.utc) >= expires_at

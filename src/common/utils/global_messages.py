class GlobalMessages:
    # Auth Messages
    INVALID_CREDENTIALS = "Invalid email or password."
    ACCOUNT_DEACTIVATED = "Your account has been deactivated. Please contact the clinic owner."
    COULD_NOT_VALIDATE = "Could not validate credentials. Please log in again."
    INSUFFICIENT_ROLE = "You do not have permission to perform this action."
    ACCOUNT_ALREADY_EXISTS = "An account with this email already exists."
    PASSWORD_UPDATED = "Password has been successfully updated."
    CURRENT_PASSWORD_INCORRECT = "Current password is incorrect."
    OTP_SENT = "If an owner account with this email exists, a reset code has been sent."
    INVALID_OR_EXPIRED_OTP = "Reset code is invalid or expired."

    # User Messages
    USER_NOT_FOUND = "User not found."
    RECEPTIONIST_ONLY = "Only receptionist accounts can be managed here."

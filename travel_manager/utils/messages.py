"""User-facing error messages, keyed by locale."""

MESSAGES = {
    "en": {
        "bad_credentials": "Invalid email or password",
        "email_taken": "A user with this email already exists",
        "invalid_email": "Please enter a valid email address",
    },
    "ru": {
        "bad_credentials": "Неверный логин или пароль",
        "email_taken": "Пользователь с такой почтой уже существует",
        "invalid_email": "Введите корректный адрес электронной почты",
    },
}


def message(key: str, locale: str = "en") -> str:
    """Return the message for ``key`` in ``locale``, falling back to English."""
    catalog = MESSAGES.get(locale, MESSAGES["en"])
    return catalog.get(key, MESSAGES["en"][key])

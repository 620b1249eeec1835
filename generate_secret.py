import secrets


def generate_secret_key(length: int = 32):
    """Generate a random value for SECRET_KEY (signs admin access tokens)."""
    return secrets.token_hex(length)


if __name__ == "__main__":
    key = generate_secret_key()
    print(f"SECRET_KEY={key}")
    print("\nAdd the line above to your .env file.")

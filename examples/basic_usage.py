"""
akiguard — Basic Usage Example

Walks a client record through the utility layer the way the portal does:
sanitize the form input, encrypt the sensitive field, hash the password,
issue a token pair at login and compress an uploaded CSV attachment.
"""

import logging
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

from akiguard import (
    EnvelopeCipher,
    Hasher,
    SecurityConfig,
    TokenManager,
    TokenSubject,
    extract_bearer_token,
    restore_file,
    sanitize_email,
    sanitize_kenyan_phone,
)
from akiguard.compression import build_attachment
from akiguard.errors import AuthenticationError, WrongTokenTypeError


def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    # In production these come from the environment: SecurityConfig.from_env()
    config = SecurityConfig(
        encryption_key="example-key-change-this-32-bytes",
        access_token_secret="example-access-secret-change-this-now",
        refresh_token_secret="example-refresh-secret-change-this-now",
        password_hash_rounds=10,
    )

    print("=" * 50)
    print("  akiguard — Client Portal Walkthrough")
    print("=" * 50)

    # Form input
    email = sanitize_email("  Wanjiku.M@Example.CO.KE ")
    phone = sanitize_kenyan_phone("0712 345 678")
    print(f"\nSanitized email: {email}")
    print(f"Sanitized phone: {phone}")

    # Encrypt the phone number before it hits the database
    cipher = EnvelopeCipher(config)
    envelope = cipher.encrypt(phone)
    print(f"\nEncrypted phone: {envelope[:48]}...")
    print(f"Decrypted phone: {cipher.decrypt(envelope)}")

    iv, tag, ciphertext = envelope.split(":")
    tampered = f"{iv}:{tag}:{'0' if ciphertext[0] != '0' else '1'}{ciphertext[1:]}"
    try:
        cipher.decrypt(tampered)
        print("  ERROR: Tampered envelope should have failed!")
    except AuthenticationError:
        print("  Tampered envelope correctly rejected")

    # Passwords and signatures
    hasher = Hasher(config)
    password_hash = hasher.hash_password("Mradi-2024!")
    print(f"\nPassword hash: {password_hash}")
    print(f"  correct password: {hasher.verify_password('Mradi-2024!', password_hash)}")
    print(f"  wrong password:   {hasher.verify_password('mradi-2024!', password_hash)}")

    signature = hasher.create_signature({"invoice": 2041, "total": 185000})
    print(f"Invoice signature valid: {hasher.verify_signature({'total': 185000, 'invoice': 2041}, signature)}")

    # Login
    tokens = TokenManager(config)
    pair = tokens.issue_token_pair(
        TokenSubject(subject_id="usr_1042", email=email, role="client")
    )
    print(f"\nAccess token expires in {pair.expires_in}s, refresh in {pair.refresh_expires_in}s")

    header = f"Bearer {pair.access_token}"
    payload = tokens.verify_access_token(extract_bearer_token(header))
    print(f"Authenticated {payload.email} as {payload.role} (jti {payload.jti})")

    try:
        tokens.verify_access_token(pair.refresh_token)
        print("  ERROR: Refresh token should not pass as access token!")
    except WrongTokenTypeError as e:
        print(f"  Correctly rejected: {e}")

    # Upload
    csv = b"item,qty,unit_price\ncement,120,750\nballast,40,2300\n" * 30
    attachment = build_attachment(csv, "materials.csv", "text/csv")
    print(f"\nAttachment {attachment.id}: {attachment.original_size}B -> "
          f"{attachment.compressed_size}B ({attachment.compression_ratio:.1f}% saved, {attachment.method})")
    assert restore_file(attachment) == csv
    print("Attachment restored byte-for-byte")


if __name__ == "__main__":
    main()

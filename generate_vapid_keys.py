"""
Generate a VAPID key pair for Web Push.

Run once:
    python generate_vapid_keys.py

Put VAPID_PUBLIC_KEY / VAPID_PRIVATE_KEY in the server .env and the same
public key in the client build (VITE_VAPID_PUBLIC_KEY).
"""
import base64

from py_vapid import Vapid


def b64url(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode()


def main():
    v = Vapid()
    v.generate_keys()

    # Application server key: uncompressed EC point 0x04 || X || Y
    pub_nums = v.public_key.public_numbers()
    raw_public = b"\x04" + pub_nums.x.to_bytes(32, "big") + pub_nums.y.to_bytes(32, "big")

    # Raw 32-byte private scalar, same format the web-push CLI prints
    raw_private = v.private_key.private_numbers().private_value.to_bytes(32, "big")

    print("Add these to your .env:\n")
    print(f"VAPID_PUBLIC_KEY={b64url(raw_public)}")
    print(f"VAPID_PRIVATE_KEY={b64url(raw_private)}")
    print("VAPID_SUBJECT=mailto:admin@savvy.app")


if __name__ == "__main__":
    main()

# send_test_email.py
import sys

from app.core.email_client import send_email


def main():
    if len(sys.argv) != 2:
        print("usage: python send_test_email.py <recipient>")
        sys.exit(1)

    print("Sending test email...")

    send_email(
        to_email=sys.argv[1],
        subject="[Shalura] Test Email",
        text_body="This is a plain text test email from the Shalura store backend.",
        html_body="<h1>HTML Test Email</h1><p>This is a <b>test</b> email.</p>",
    )

    print("If no errors: email sent! Check your inbox.")


if __name__ == "__main__":
    main()

import requests
from flask import current_app

TWILIO_MESSAGES_URL = "https://api.twilio.com/2010-04-01/Accounts/{sid}/Messages.json"


def send_sms(to_phone: str, body: str, config=None):
    if config is None:
        config = current_app.config

    sid = config.get("TWILIO_ACCOUNT_SID")
    token = config.get("TWILIO_AUTH_TOKEN")
    from_phone = config.get("TWILIO_PHONE_NUMBER")

    if not sid or not token or not from_phone:
        return False, "SMS not configured"
    if not to_phone:
        return False, "No recipient"

    try:
        r = requests.post(
            TWILIO_MESSAGES_URL.format(sid=sid),
            data={"To": to_phone, "From": from_phone, "Body": body},
            auth=(sid, token),
            timeout=10,
        )
    except requests.RequestException as exc:
        return False, str(exc)

    if r.status_code >= 400:
        return False, f"Twilio error {r.status_code}: {r.text[:200]}"
    return True, None

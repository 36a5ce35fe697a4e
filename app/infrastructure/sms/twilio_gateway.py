from typing import Optional

import requests
from twilio.rest import Client
from twilio.http.http_client import TwilioHttpClient
from twilio.base.exceptions import TwilioException, TwilioRestException

from ...application.ports.sms_gateway import SmsGateway, SmsSendResult, SmsTransportError


class TwilioSmsGateway(SmsGateway):
    name = "twilio"

    def __init__(self, account_sid: str, auth_token: str, timeout: float = 10.0, client: Optional[Client] = None):
        # No retries here; resending is the caller's decision
        self.client = client or Client(account_sid, auth_token, http_client=TwilioHttpClient(timeout=timeout, max_retries=0))

    def send(self, to: str, sender: str, text: str) -> SmsSendResult:
        try:
            message = self.client.messages.create(to=to, from_=sender, body=text)
        except TwilioRestException as e:
            return SmsSendResult(
                success=False,
                error_code=str(e.code or e.status),
                error_message=e.msg,
                raw={"status": e.status, "code": e.code},
            )
        except TwilioException as e:
            raise SmsTransportError(f"Twilio request failed: {e}") from e
        except requests.RequestException as e:
            raise SmsTransportError(f"Twilio unreachable: {e}") from e
        return SmsSendResult(success=True, provider_message_id=message.sid, raw={"status": message.status})

import logging
from typing import Any, Dict

import requests

from ...application.ports.sms_gateway import SmsGateway, SmsSendResult, SmsTransportError

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "https://rest.payamak-panel.com/api/SendSMS/"


class FarapayamakGateway(SmsGateway):
    """REST client for the Farapayamak panel; ``RetStatus == 1`` means accepted."""

    name = "farapayamak"

    def __init__(self, username: str, password: str, endpoint: str = DEFAULT_ENDPOINT,
                 timeout: float = 10.0, verify_ssl: bool = True, http=None):
        self.username = username
        self.password = password
        self.endpoint = endpoint if endpoint.endswith("/") else endpoint + "/"
        self.timeout = timeout
        self.verify_ssl = verify_ssl
        self.http = http or requests

    def _post(self, route: str, data: Dict[str, Any]) -> Dict[str, Any]:
        payload = dict(data, username=self.username, password=self.password)
        try:
            response = self.http.post(
                self.endpoint + route,
                data=payload,
                timeout=self.timeout,
                verify=self.verify_ssl,
            )
            response.raise_for_status()
            body = response.json()
        except requests.RequestException as e:
            raise SmsTransportError(f"Farapayamak request failed: {e}") from e
        except ValueError as e:
            raise SmsTransportError("Farapayamak returned a non-JSON response") from e
        if not isinstance(body, dict):
            raise SmsTransportError("Farapayamak returned an unexpected payload")
        return body

    def send(self, to: str, sender: str, text: str) -> SmsSendResult:
        body = self._post("SendSMS", {"to": to, "from": sender, "text": text, "isFlash": "false"})
        ret_status = body.get("RetStatus")
        message_id = body.get("Value") or body.get("MsgID")
        if ret_status == 1 or str(ret_status) == "1":
            return SmsSendResult(success=True, provider_message_id=str(message_id) if message_id else None, raw=body)
        logger.warning(f"Farapayamak rejected message: RetStatus={ret_status} StrRetStatus={body.get('StrRetStatus')}")
        return SmsSendResult(
            success=False,
            provider_message_id=str(message_id) if message_id else None,
            error_code=str(ret_status) if ret_status is not None else "unknown",
            error_message=body.get("StrRetStatus") or "Unknown provider error.",
            raw=body,
        )

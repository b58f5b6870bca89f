from typing import Any, Optional

from pydantic import BaseModel, ConfigDict


class MessengerUser(BaseModel):
    id: str

    model_config = ConfigDict(coerce_numbers_to_str=True)


class MessengerAttachment(BaseModel):
    type: str
    payload: Optional[Any] = None


class MessengerMessage(BaseModel):
    mid: Optional[str] = None
    text: Optional[str] = None
    attachments: Optional[list[MessengerAttachment]] = None
    quick_reply: Optional[dict] = None
    is_echo: Optional[bool] = None


class MessengerPostback(BaseModel):
    payload: Optional[str] = None
    title: Optional[str] = None


class MessagingEvent(BaseModel):
    sender: MessengerUser
    recipient: MessengerUser
    timestamp: Optional[int] = None
    message: Optional[MessengerMessage] = None
    postback: Optional[MessengerPostback] = None


class WebhookEntry(BaseModel):
    id: str
    time: Optional[int] = None
    # Validated one event at a time so a bad event does not drop the batch
    messaging: list[Any] = []

    model_config = ConfigDict(coerce_numbers_to_str=True)


class MessengerWebhook(BaseModel):
    object: str
    # Validated one entry at a time, like events
    entry: list[Any] = []


class WebhookResponse(BaseModel):
    success: bool
    events: int = 0
    message: Optional[str] = None

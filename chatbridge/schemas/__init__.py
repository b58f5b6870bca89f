from chatbridge.schemas.messenger import MessagingEvent, MessengerWebhook, WebhookEntry, WebhookResponse

__all__ = ["MessagingEvent", "MessengerWebhook", "WebhookEntry", "WebhookResponse"]

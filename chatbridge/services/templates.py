"""Messenger message payload builders. Plain data, no I/O."""

from typing import Optional

TONIGHTS_SCHEDULE = [
    {
        "title": "7:30PM ET - The Bone Collector",
        "image_url": "http://images.amcnetworks.com/sundancechannel.com/wp-content/uploads/2016/04/The-Bone-Collector-700x384-700x384.jpg",
        "subtitle": "A quadriplegic detective (Denzel Washington) and a patrol cop (Angelina Jolie) try to catch a killer re-creating grisly crimes.",
        "more_info_url": "http://www.sundance.tv/films/the-bone-collector",
        "reminder": "Set reminder for The Bone Collector",
    },
    {
        "title": "10:00PM ET - The Last Panthers",
        "image_url": "http://images.amcnetworks.com/sundancechannel.com/wp-content/uploads/2016/04/The-Last-Panthers-Episode-104-Serpents-Kiss800x450-700x384.jpg",
        "subtitle": "Episode 4: Serpent's Kiss",
        "more_info_url": "http://www.sundance.tv/series/the-last-panthers/episodes/season-1/serpents-kiss",
        "reminder": "Set reminder for The Last Panthers",
    },
    {
        "title": "11:10PM - Breaking Bad",
        "image_url": "http://images.amcnetworks.com/sundancechannel.com/wp-content/uploads/2013/02/breaking-bad-280x160.jpg",
        "subtitle": "Pilot",
        "more_info_url": "http://www.sundance.tv/series/breaking-bad",
        "reminder": "Set reminder for Breaking Bad",
    },
]


def build_text_message(text: str) -> dict:
    return {"text": text}


def build_quick_replies_message(text: str, replies: list[str]) -> dict:
    return {
        "text": text,
        "quick_replies": [{"content_type": "text", "title": reply, "payload": reply} for reply in replies],
    }


def build_image_message(image_url: str) -> dict:
    return {
        "attachment": {
            "type": "image",
            "payload": {"url": image_url},
        }
    }


def build_generic_template(elements: list[dict]) -> dict:
    return {
        "attachment": {
            "type": "template",
            "payload": {
                "template_type": "generic",
                "elements": elements,
            },
        }
    }


def build_schedule_element(
    title: str,
    image_url: str,
    subtitle: str,
    more_info_url: str,
    reminder: Optional[str] = None,
) -> dict:
    """Carousel card with a More Info link and an optional Set Reminder postback."""
    buttons = [{"type": "web_url", "url": more_info_url, "title": "More Info"}]
    if reminder:
        buttons.append({"type": "postback", "title": "Set Reminder", "payload": reminder})
    return {
        "title": title,
        "image_url": image_url,
        "subtitle": subtitle,
        "buttons": buttons,
    }


def build_schedule_elements(schedule: list[dict] = TONIGHTS_SCHEDULE) -> list[dict]:
    return [build_schedule_element(**show) for show in schedule]

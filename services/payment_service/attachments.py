from typing import Iterable

from .schemas import Attachment

IMAGE_EXTENSIONS = (".png", ".jpg", ".jpeg", ".webp")


class AttachmentClassifier:
    def __init__(self, extensions: Iterable[str] = IMAGE_EXTENSIONS):
        self.extensions = tuple(ext.lower() for ext in extensions)

    def is_proof(self, attachment: Attachment) -> bool:
        name = (attachment.name or "").lower()
        return bool(name) and name.endswith(self.extensions)

    def classify(self, attachments: Iterable[Attachment]) -> Attachment | None:
        """Returns the first attachment that looks like a payment screenshot."""
        for attachment in attachments:
            if self.is_proof(attachment):
                return attachment
        return None

#!/usr/bin/env python3
import base64
import io
from typing import List, Dict, Optional

from infra.pipeline.logger import PipelineLogger


def encode_image(img, quality: int = 75) -> str:
    """Encode a PIL image as a JPEG data URL."""
    if img.mode not in ("RGB", "L"):
        img = img.convert("RGB")
    buffered = io.BytesIO()
    img.save(buffered, format="JPEG", quality=quality)
    img_b64 = base64.b64encode(buffered.getvalue()).decode('utf-8')
    return f"data:image/jpeg;base64,{img_b64}"


def add_images_to_messages(
    messages: List[Dict],
    images: List,
    logger: Optional[PipelineLogger] = None
) -> List[Dict]:
    """Attach PIL images to the last user message in multipart format."""
    user_msg_idx = None
    for i in range(len(messages) - 1, -1, -1):
        if messages[i]['role'] == 'user':
            user_msg_idx = i
            break

    if user_msg_idx is None:
        raise ValueError("No user message found to attach images to")

    original_content = messages[user_msg_idx]['content']

    if isinstance(original_content, list):
        content = original_content.copy()
    else:
        content = [{"type": "text", "text": original_content}]

    total_chars = 0
    for img in images:
        data_url = encode_image(img)
        total_chars += len(data_url)
        content.append({
            "type": "image_url",
            "image_url": {
                "url": data_url
            }
        })

    messages = messages.copy()
    messages[user_msg_idx] = messages[user_msg_idx].copy()
    messages[user_msg_idx]['content'] = content

    if logger:
        logger.debug(
            f"Attached {len(images)} images to user message",
            num_images=len(images),
            base64_chars=total_chars,
            message_index=user_msg_idx,
        )

    return messages

import base64
from typing import Optional

def to_data_url(blob: Optional[bytes], mime: str = "image/jpeg") -> Optional[str]:
    """二进制图片 -> data:<mime>;base64,... ；空值返回 None"""
    if not blob:
        return None
    return f"data:{mime};base64,{base64.b64encode(bytes(blob)).decode('ascii')}"

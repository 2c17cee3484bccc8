"""
Image Message Schema
====================

Pydantic model for image messages received over the WebSocket transport.

Wire Contract:
    {
        "topic": "/camera/image_raw",
        "encoding": "bgr8",
        "width": 640,
        "height": 480,
        "step": 1920,
        "is_bigendian": false,
        "frame_id": "camera_optical",
        "seq": 1234,
        "stamp": 1707321234.567,
        "data": "<base64 pixel bytes>"
    }

Only the shape of the message is validated here. Whether the bytes agree
with encoding and dimensions is the decoder's job, so a frame with a bad
length still reaches the pipeline and is reported there.

Example:
    message = ImageMessage.model_validate_json(raw)
    frame = message.to_raw_frame()
"""

import base64
import binascii
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from image_ingest.stream.frame import RawFrame


class ImageMessage(BaseModel):
    """
    Schema for image messages on the wire.

    Attributes:
        topic: Stream name the message was published on
        encoding: Pixel layout tag
        width: Columns
        height: Rows
        step: Row stride in bytes (None = tightly packed)
        is_bigendian: Byte order of multi-byte samples
        frame_id: Sensor frame name
        seq: Sequence number
        stamp: UNIX timestamp in seconds
        data: Base64-encoded pixel bytes
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "topic": "/camera/image_raw",
                "encoding": "bgr8",
                "width": 2,
                "height": 1,
                "step": 6,
                "is_bigendian": False,
                "frame_id": "camera",
                "seq": 0,
                "stamp": 1707321234.567,
                "data": "AQIDBAUG",
            }
        }
    )

    topic: Optional[str] = Field(default=None, description="Stream name")
    encoding: str = Field(..., min_length=1, description="Pixel layout tag")
    width: int = Field(..., ge=0, description="Image width in pixels")
    height: int = Field(..., ge=0, description="Image height in pixels")
    step: Optional[int] = Field(default=None, ge=0, description="Row stride in bytes")
    is_bigendian: bool = Field(default=False, description="Sample byte order")
    frame_id: str = Field(default="", description="Sensor frame name")
    seq: int = Field(default=0, ge=0, description="Sequence number")
    stamp: float = Field(default=0.0, ge=0, description="UNIX timestamp")
    data: str = Field(..., description="Base64-encoded pixel bytes")

    def to_raw_frame(self) -> RawFrame:
        """
        Build the RawFrame handed to the pipeline.

        Raises:
            ValueError: If data is not valid base64
        """
        try:
            payload = base64.b64decode(self.data, validate=True)
        except binascii.Error as e:
            raise ValueError(f"Invalid base64 payload: {e}") from e

        return RawFrame(
            encoding=self.encoding,
            width=self.width,
            height=self.height,
            data=payload,
            step=self.step,
            is_bigendian=self.is_bigendian,
            frame_id=self.frame_id,
            seq=self.seq,
            stamp=self.stamp,
        )

    @classmethod
    def from_raw_frame(cls, frame: RawFrame, topic: Optional[str] = None) -> "ImageMessage":
        """Wrap a RawFrame for publishing."""
        return cls(
            topic=topic,
            encoding=frame.encoding,
            width=frame.width,
            height=frame.height,
            step=frame.step,
            is_bigendian=frame.is_bigendian,
            frame_id=frame.frame_id,
            seq=frame.seq,
            stamp=frame.stamp,
            data=base64.b64encode(frame.data).decode("ascii"),
        )

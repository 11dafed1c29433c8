"""
Pose API Schemas

Pydantic models for pose detection requests and responses.
These define the JSON structure for communication with frontend.
"""

from pydantic import BaseModel, Field
from typing import Optional, List


class LandmarkSchema(BaseModel):
    """
    Single body landmark in API response.

    Coordinates are normalized (0.0 to 1.0, slightly outside for
    off-screen points). Frontend multiplies by canvas dimensions to get
    pixel positions.
    """
    x: float = Field(..., description="Horizontal position (0=left, 1=right)")
    y: float = Field(..., description="Vertical position (0=top, 1=bottom)")
    z: float = Field(..., description="Depth (negative=closer to camera)")
    visibility: Optional[float] = Field(None, ge=0.0, le=1.0, description="Detection confidence")
    body_part: Optional[str] = Field(None, description="Body part name (e.g., 'LEFT_SHOULDER')")

    class Config:
        json_schema_extra = {
            "example": {
                "x": 0.45,
                "y": 0.32,
                "z": -0.15,
                "visibility": 0.95,
                "body_part": "LEFT_SHOULDER"
            }
        }


class PoseFrameSchema(BaseModel):
    """
    Complete pose detection result for one frame.

    Contains all 33 MediaPipe landmarks plus metadata.
    """
    landmarks: List[LandmarkSchema] = Field(..., description="33 body landmarks")
    world_landmarks: List[LandmarkSchema] = Field(
        default_factory=list, description="Landmarks in metres, hip-centred"
    )
    timestamp_ms: int = Field(..., ge=0, description="Video timestamp in milliseconds")
    frame_number: int = Field(..., ge=0, description="Sequential frame number")
    confidence: float = Field(..., ge=0.0, le=1.0, description="Overall detection confidence")


class PoseDetectionRequest(BaseModel):
    """
    Request to detect pose in a base64-encoded image.

    Used for single-frame detection via REST API.
    """
    image_base64: str = Field(..., description="Base64 encoded JPEG/PNG image")
    timestamp_ms: int = Field(0, ge=0, description="Optional timestamp")
    frame_number: int = Field(0, ge=0, description="Optional frame number")

    class Config:
        json_schema_extra = {
            "example": {
                "image_base64": "/9j/4AAQSkZJRg...",
                "timestamp_ms": 0,
                "frame_number": 0
            }
        }


class PoseDetectionResponse(BaseModel):
    """
    Response from pose detection.

    `success` with `pose` null means the image was processed but no
    person was found (absence, not an error).
    """
    success: bool = Field(..., description="Whether the image was processed")
    pose: Optional[PoseFrameSchema] = Field(None, description="Detected pose (null if no person found)")
    error: Optional[str] = Field(None, description="Error message if failed")
    processing_time_ms: float = Field(..., description="Time taken to process in milliseconds")


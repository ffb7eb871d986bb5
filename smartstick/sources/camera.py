"""Webcam frame source producing object detections (ultralytics YOLO)."""

from typing import List, Optional, Tuple

import cv2
import numpy as np

from smartstick.guidance.types import BoundingBox, Detection
from smartstick.utils.logger import get_logger

logger = get_logger(__name__)


class FrameSourceError(Exception):
    """Raised when the camera or detector cannot start."""
    pass


class YOLODetector:
    """YOLOv8 detector using ultralytics (requires PyTorch)."""

    def __init__(
        self,
        model_path: str = "yolov8n.pt",
        confidence_threshold: float = 0.5,
        device: str = "auto"
    ):
        self.conf_threshold = confidence_threshold

        try:
            from ultralytics import YOLO
            import torch
        except ImportError as e:
            raise FrameSourceError("Object detection requires: pip install smartstick[detection]") from e

        if device == "auto":
            if torch.backends.mps.is_available():
                self.device = "mps"
            elif torch.cuda.is_available():
                self.device = "cuda"
            else:
                self.device = "cpu"
        else:
            self.device = device

        logger.info(f"Loading YOLO model {model_path} on {self.device}")
        self.model = YOLO(model_path)

        # Warmup
        dummy = np.zeros((240, 320, 3), dtype=np.uint8)
        self.model.predict(dummy, device=self.device, verbose=False)
        logger.info("YOLO detector ready")

    def detect(self, frame: np.ndarray) -> List[Detection]:
        """Run detection on a BGR frame."""
        results = self.model.predict(
            frame,
            conf=self.conf_threshold,
            device=self.device,
            verbose=False
        )

        detections = []
        for result in results:
            boxes = result.boxes
            if boxes is None:
                continue

            for i in range(len(boxes)):
                x1, y1, x2, y2 = map(float, boxes.xyxy[i].cpu().numpy())
                class_id = int(boxes.cls[i].cpu().numpy())
                detections.append(Detection(
                    class_name=result.names[class_id],
                    bbox=BoundingBox.from_xyxy(x1, y1, x2, y2),
                    confidence=float(boxes.conf[i].cpu().numpy())
                ))

        return detections


class CameraDetectionSource:
    """
    Grabs webcam frames and runs the detector on each.

    read() returns the detections and the frame width the classifier needs.
    """

    def __init__(
        self,
        device_index: int = 0,
        width: int = 320,
        height: int = 240,
        model_path: str = "yolov8n.pt",
        confidence_threshold: float = 0.5
    ):
        self.device_index = device_index
        self.width = width
        self.height = height
        self.model_path = model_path
        self.confidence_threshold = confidence_threshold

        self.cap: Optional[cv2.VideoCapture] = None
        self.detector: Optional[YOLODetector] = None

    def open(self) -> None:
        """
        Open the camera and load the detector.

        Raises:
            FrameSourceError: If either cannot be started.
        """
        cap = cv2.VideoCapture(self.device_index)
        if not cap.isOpened():
            cap.release()
            raise FrameSourceError(f"Camera {self.device_index} could not be opened")

        cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.width)
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.height)
        self.cap = cap

        try:
            self.detector = YOLODetector(self.model_path, self.confidence_threshold)
        except FrameSourceError:
            self.close()
            raise
        except Exception as e:
            self.close()
            raise FrameSourceError(f"Detector failed to load: {e}") from e

        logger.info(f"Camera {self.device_index} opened ({self.width}x{self.height})")

    def read(self) -> Optional[Tuple[List[Detection], int]]:
        """Grab one frame; None if the camera returned nothing."""
        if self.cap is None or self.detector is None:
            return None

        ok, frame = self.cap.read()
        if not ok or frame is None:
            return None

        return self.detector.detect(frame), frame.shape[1]

    def close(self) -> None:
        if self.cap is not None:
            self.cap.release()
            self.cap = None

"""Screen grabber image provider - choose and run an extraction strategy."""

import logging
from datetime import timedelta

from .eligibility import can_extract, supports
from .interfaces import MediaEncoder
from .models import (
    BaseItem,
    ExtractionPlan,
    ExtractionStrategy,
    ImageExtractionResult,
    ImageFormat,
    ImageType,
    MediaProtocol,
    MediaSourceInfo,
    MediaStream,
    MediaStreamType,
    Video,
    VideoType,
    ticks_to_timedelta,
)

logger = logging.getLogger(__name__)

DEFAULT_IMAGE_OFFSET = timedelta(seconds=10)
RUNTIME_OFFSET_RATIO = 0.1


def select_image_stream(streams: list[MediaStream]) -> MediaStream | None:
    """Pick the embedded image to use as cover art.

    Order matters: a "front" comment beats a "cover" comment, which beats
    whatever embedded image comes first in the container.
    """
    image_streams = [s for s in streams if s.type == MediaStreamType.EMBEDDED_IMAGE]

    for keyword in ("front", "cover"):
        for stream in image_streams:
            if keyword in (stream.comment or "").lower():
                return stream

    return image_streams[0] if image_streams else None


def compute_image_offset(video: Video) -> timedelta:
    """Grab 10% into the video if the runtime is known, else 10 seconds in.

    DVDs always get 10 seconds because their runtime can be way off. The DVD
    check repeats can_extract() for callers that plan without the gate.
    """
    runtime = video.runtime_ticks
    if video.video_type is not VideoType.DVD and runtime is not None and runtime > 0:
        return ticks_to_timedelta(round(runtime * RUNTIME_OFFSET_RATIO))
    return DEFAULT_IMAGE_OFFSET


def plan_extraction(video: Video) -> ExtractionPlan:
    """Work out where the image for a video will come from."""
    protocol = video.path_protocol or MediaProtocol.FILE
    streams = video.get_media_streams()

    image_stream = select_image_stream(streams)
    if image_stream is not None:
        return ExtractionPlan(
            strategy=ExtractionStrategy.EMBEDDED,
            stream=image_stream,
            protocol=protocol,
        )

    video_streams = video.get_media_streams(MediaStreamType.VIDEO)
    video_stream = video_streams[0] if video_streams else None
    return ExtractionPlan(
        strategy=ExtractionStrategy.FRAME,
        stream=video_stream,
        protocol=protocol,
        offset=compute_image_offset(video),
    )


class VideoImageProvider:
    """Produces a primary image for local videos via a media encoder."""

    name = "Screen Grabber"

    # Comes after remote image sources when a caller orders several
    order = 100

    def __init__(self, encoder: MediaEncoder):
        self.encoder = encoder

    def supports(self, item: BaseItem) -> bool:
        return supports(item)

    def get_supported_images(self, item: BaseItem) -> list[ImageType]:
        return [ImageType.PRIMARY]

    async def get_image(
        self,
        item: Video,
        image_type: ImageType = ImageType.PRIMARY,
    ) -> ImageExtractionResult:
        """
        Extract an image for a video, skipping items that cannot yield one.

        Args:
            item: Fully probed video item
            image_type: Requested image type; only primary images are produced

        Returns:
            ImageExtractionResult, with has_image=False for skipped items

        Raises:
            EncodingError: If the encoder fails
            asyncio.CancelledError: If the task is cancelled mid-extraction
        """
        if not can_extract(item):
            return ImageExtractionResult.no_image()

        return await self.get_video_image(item)

    async def get_video_image(self, item: Video) -> ImageExtractionResult:
        """Run the extraction plan for a video without the eligibility check."""
        plan = plan_extraction(item)
        media_source = MediaSourceInfo(
            video_type=item.video_type,
            iso_type=item.iso_type,
            protocol=plan.protocol,
        )

        if plan.strategy is ExtractionStrategy.EMBEDDED:
            logger.info(
                "Extracting embedded image stream %d from %s",
                plan.stream.index,
                item.path,
            )
            extracted_path = await self.encoder.extract_embedded_image(
                item.path,
                item.container,
                media_source,
                plan.stream,
                plan.stream.index,
            )
        else:
            logger.info(
                "Extracting frame at %.3fs from %s",
                plan.offset.total_seconds(),
                item.path,
            )
            extracted_path = await self.encoder.extract_frame(
                item.path,
                item.container,
                media_source,
                plan.stream,
                item.video_3d_format,
                plan.offset,
            )

        return ImageExtractionResult(
            has_image=True,
            format=ImageFormat.JPG,
            path=extracted_path,
            protocol=MediaProtocol.FILE,
        )

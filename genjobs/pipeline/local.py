"""Development pipeline for the in-process queue.

Does no generation. It records what can be read off the URL and
completes with a reference to the video, so the lifecycle can be
exercised end to end without the real pipeline.
"""

import importlib

from genjobs.jobs.errors import PipelineFailure
from genjobs.jobs.models import JobRecord, VideoMetadata
from genjobs.jobs.sources import extract_video_id
from genjobs.jobs.worker import JobSession, PipelineFn, PipelineOutcome


def describe_source(job: JobRecord, session: JobSession) -> PipelineOutcome:
    video_id = extract_video_id(job.source_reference)
    if video_id is None:
        raise PipelineFailure(f"Could not read a video id from {job.source_reference}")

    session.progress(
        25,
        VideoMetadata(thumbnail_url=f"https://i.ytimg.com/vi/{video_id}/hqdefault.jpg"),
    )
    session.progress(75)
    return PipelineOutcome(result_reference=f"video:{video_id}")


def load_pipeline(entrypoint: str) -> PipelineFn:
    """Resolve a "package.module:function" string to the pipeline callable."""
    module_name, sep, attr = entrypoint.partition(":")
    if not sep or not module_name or not attr:
        raise ValueError(f"Pipeline entrypoint must look like 'module:function', got {entrypoint!r}")
    module = importlib.import_module(module_name)
    fn = getattr(module, attr, None)
    if not callable(fn):
        raise ValueError(f"Pipeline entrypoint {entrypoint!r} is not callable")
    return fn

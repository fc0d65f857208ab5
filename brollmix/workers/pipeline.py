"""
Pipeline Driver - Runs one job from acquisition to final export.

Stages: acquisition -> planning & cutting -> concatenation -> composition ->
finalization. Every external call runs in a worker thread so other jobs and
status polling keep going. Cancellation is checked between calls; an
in-flight ffmpeg or yt-dlp call always runs to completion.
"""
from __future__ import annotations

import asyncio
import logging
import os
import random
import shutil
from typing import List, Optional

from brollmix.core.enums import JobState, PipelineOutcome
from brollmix.core.logging import JobContext
from brollmix.core.scramble_settings import scramble_settings
from brollmix.core.settings import Settings, settings as app_settings
from brollmix.models.job import JobConfig, JobProgress
from brollmix.models.media import CutClip, SourceClip
from brollmix.services.compositor import apply_composition, resolve_dimensions, select_composition
from brollmix.services.scrambler import ScrambleConfig, plan_clips, total_duration
from brollmix.services.sfx import SfxLibrary, transition_times
from brollmix.utils import format_duration
from brollmix.workers.job_table import JobTable

logger = logging.getLogger(__name__)

NO_SOURCES_MESSAGE = "Couldn't load any B-roll videos"
NO_CLIPS_MESSAGE = "No usable clip positions in the B-roll sources"

CONCAT_FILENAME = "broll_concat.mp4"


class JobCancelled(Exception):
    """The job was cancelled; stop without writing anything."""


class StageError(Exception):
    """A stage can't continue; the message is shown to the user."""


def output_filename(config: JobConfig, job_id: str) -> str:
    return f"broll_{config.output_format.value}_{job_id}.mp4"


def clip_filename(index: int) -> str:
    return f"clip_{index:04d}.mp4"


class PipelineRun:
    def __init__(
        self,
        table: JobTable,
        job_id: str,
        config: JobConfig,
        engine,
        fetcher,
        settings: Settings,
        rng: random.Random,
    ):
        self.table = table
        self.job_id = job_id
        self.config = config
        self.engine = engine
        self.fetcher = fetcher
        self.settings = settings
        self.rng = rng

        self.job_dir = os.path.join(settings.temp_dir, job_id)
        self.clips_dir = os.path.join(self.job_dir, "clips")

    # =========================================================================
    # Helpers
    # =========================================================================

    def check_cancelled(self) -> None:
        if self.table.is_cancelled(self.job_id):
            raise JobCancelled()

    def progress(self, stage: str, percent: float, current_item: Optional[str] = None,
                 total_items: Optional[int] = None, completed_items: Optional[int] = None) -> None:
        self.table.set_progress(
            self.job_id,
            JobProgress(
                stage=stage,
                percent=percent,
                current_item=current_item,
                total_items=total_items,
                completed_items=completed_items,
            ),
        )

    # =========================================================================
    # Stage 1: Acquisition (0-25%)
    # =========================================================================

    async def acquire(self) -> List[SourceClip]:
        self.check_cancelled()
        self.table.set_state(self.job_id, JobState.DOWNLOADING)

        if self.config.is_remote:
            sources = await self._fetch_remote(self.config.remote_urls)
        else:
            sources = await self._load_local(self.config.local_paths)

        if not sources:
            raise StageError(NO_SOURCES_MESSAGE)

        logger.info(f"[pipeline] Loaded {len(sources)} B-roll source(s)")
        return sources

    async def _fetch_remote(self, urls) -> List[SourceClip]:
        # The same link twice would race on one download file
        urls = list(dict.fromkeys(urls))
        total = len(urls)
        batch_size = max(1, self.settings.fetch_batch_size)
        sources: List[SourceClip] = []

        self.progress("Downloading B-roll videos", 0, total_items=total, completed_items=0)

        for offset in range(0, total, batch_size):
            self.check_cancelled()
            batch = urls[offset:offset + batch_size]

            results = await asyncio.gather(
                *[asyncio.to_thread(self.fetcher.fetch, url) for url in batch],
                return_exceptions=True,
            )
            for url, result in zip(batch, results):
                if isinstance(result, Exception):
                    logger.warning(f"[pipeline] Skipping {url}: {result}")
                elif isinstance(result, BaseException):
                    raise result
                else:
                    sources.append(result)

            done = min(offset + batch_size, total)
            self.progress(
                f"Downloaded {done}/{total} videos",
                done / total * 25,
                current_item=batch[-1],
                total_items=total,
                completed_items=done,
            )

        return sources

    async def _load_local(self, paths) -> List[SourceClip]:
        total = len(paths)
        sources: List[SourceClip] = []

        for i, path in enumerate(paths):
            self.check_cancelled()
            name = os.path.basename(path)
            self.progress(
                f"Loading {name}",
                10 + i / total * 15,
                current_item=name,
                total_items=total,
                completed_items=i,
            )
            try:
                meta = await asyncio.to_thread(self.engine.probe, path)
            except Exception as e:
                logger.warning(f"[pipeline] Skipping {path}: {e}")
                continue

            sources.append(SourceClip(path=path, title=name, duration=meta.duration, source_id=path))

        return sources

    # =========================================================================
    # Stage 2: Planning & cutting (25-55%)
    # =========================================================================

    async def plan_and_cut(self, sources: List[SourceClip]) -> List[CutClip]:
        self.check_cancelled()
        self.table.set_state(self.job_id, JobState.PROCESSING)
        self.progress("Analyzing your video", 25)

        try:
            user_meta = await asyncio.to_thread(self.engine.probe, self.config.user_video_path)
        except Exception as e:
            raise StageError(f"Couldn't read your video: {e}") from e

        scramble = ScrambleConfig(
            min_clip_duration=self.config.min_clip_duration,
            max_clip_duration=self.config.max_clip_duration,
            duration_variance=scramble_settings.duration_variance,
            randomize_order=True,
            step_range=(scramble_settings.step_min_sec, scramble_settings.step_max_sec),
            max_idle_passes=scramble_settings.max_idle_passes,
        )
        specs = plan_clips(sources, user_meta.duration, scramble, self.rng)
        if not specs:
            raise StageError(NO_CLIPS_MESSAGE)

        if total_duration(specs) < user_meta.duration:
            logger.warning(
                f"[pipeline] B-roll covers {format_duration(total_duration(specs))} "
                f"of {format_duration(user_meta.duration)}"
            )

        os.makedirs(self.clips_dir, exist_ok=True)
        total = len(specs)
        cut: List[CutClip] = []

        for i, spec in enumerate(specs):
            self.check_cancelled()
            self.progress(
                f"Cutting clip {i + 1}/{total}",
                35 + i / total * 20,
                current_item=clip_filename(i),
                total_items=total,
                completed_items=i,
            )
            source = sources[spec.source_index]
            out = os.path.join(self.clips_dir, clip_filename(i))
            await asyncio.to_thread(self.engine.cut, source.path, out, spec.start, spec.duration, True)
            cut.append(CutClip(path=out, source_id=source.source_id, duration=spec.duration))

        self.progress(f"Cut {total} clips", 55, total_items=total, completed_items=total)
        return cut

    # =========================================================================
    # Stage 3: Concatenation (55-60%)
    # =========================================================================

    async def join(self, clips: List[CutClip]) -> str:
        self.check_cancelled()
        self.progress("Joining clips", 55)

        concat_path = os.path.join(self.job_dir, CONCAT_FILENAME)
        await asyncio.to_thread(self.engine.concat, [c.path for c in clips], concat_path)

        self.progress("Joined clips", 60)
        return concat_path

    # =========================================================================
    # Stage 4: Composition (60-95%)
    # =========================================================================

    async def compose(self, broll_path: str) -> str:
        self.check_cancelled()
        self.table.set_state(self.job_id, JobState.COMPOSITING)
        self.progress("Compositing final video", 60)

        dims = resolve_dimensions(self.config)
        plan = select_composition(
            self.config.overlay_position,
            self.config.split_ratio,
            self.config.pip_scale,
        )

        os.makedirs(self.settings.exports_dir, exist_ok=True)
        output = os.path.join(self.settings.exports_dir, output_filename(self.config, self.job_id))

        await asyncio.to_thread(
            apply_composition, self.engine, plan, broll_path, self.config.user_video_path, output, dims
        )
        return output

    # =========================================================================
    # Stage 5: Finalization (95-100%)
    # =========================================================================

    async def finalize(self, output: str, clips: List[CutClip]) -> str:
        self.check_cancelled()
        self.table.set_state(self.job_id, JobState.FINALIZING)
        self.progress("Finalizing", 95)

        if not self.config.sfx_folder:
            return output

        library = await asyncio.to_thread(SfxLibrary.load_from_folder, self.config.sfx_folder)
        events = library.match_events(transition_times([c.duration for c in clips]), self.rng)
        resolved = library.resolve(events, self.rng)
        if not resolved:
            logger.info("[pipeline] No matching sound effects, skipping SFX")
            return output

        self.progress(f"Adding {len(resolved)} sound effects", 97)
        mixed = f"{os.path.splitext(output)[0]}_sfx.mp4"
        await asyncio.to_thread(self.engine.add_sfx, output, resolved, mixed)
        os.replace(mixed, output)
        return output

    # =========================================================================
    # Driver
    # =========================================================================

    async def execute(self) -> str:
        with JobContext(stage="acquisition"):
            sources = await self.acquire()
        with JobContext(stage="cutting"):
            clips = await self.plan_and_cut(sources)
        with JobContext(stage="concat"):
            broll_path = await self.join(clips)
        with JobContext(stage="compositing"):
            output = await self.compose(broll_path)
        with JobContext(stage="finalizing"):
            return await self.finalize(output, clips)

    def cleanup(self) -> None:
        if self.settings.keep_temp_files:
            logger.info(f"[pipeline] Keeping temp files in {self.job_dir}")
            return
        try:
            shutil.rmtree(self.job_dir)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"[pipeline] Couldn't remove {self.job_dir}: {e}")


async def run_job(
    table: JobTable,
    job_id: str,
    *,
    engine,
    fetcher=None,
    settings: Optional[Settings] = None,
    rng: Optional[random.Random] = None,
) -> PipelineOutcome:
    """
    Run one job to a terminal state. Never raises for job-level failures;
    they end up in the job table as FAILED with the message.
    """
    config = table.get_config(job_id)
    if config is None:
        logger.error(f"[pipeline] Unknown job {job_id}")
        return PipelineOutcome.FAILED

    run = PipelineRun(
        table,
        job_id,
        config,
        engine,
        fetcher,
        settings or app_settings,
        rng or random.Random(),
    )

    with JobContext(job_id=job_id):
        logger.info(f"[pipeline] Starting job {job_id}")
        try:
            output = await run.execute()
        except JobCancelled:
            logger.info(f"[pipeline] Job {job_id} cancelled, stopping")
            return PipelineOutcome.CANCELLED
        except StageError as e:
            logger.error(f"[pipeline] Job {job_id} failed: {e}")
            return _fail(table, job_id, str(e))
        except Exception as e:
            logger.exception(f"[pipeline] Job {job_id} failed unexpectedly: {e}")
            return _fail(table, job_id, str(e))
        finally:
            run.cleanup()

        if not table.mark_complete(job_id, output):
            # Cancelled after the last check; the cancel wins
            return PipelineOutcome.CANCELLED
        logger.info(f"[pipeline] Job {job_id} complete: {output}")
        return PipelineOutcome.COMPLETED


def _fail(table: JobTable, job_id: str, message: str) -> PipelineOutcome:
    if table.mark_failed(job_id, message):
        return PipelineOutcome.FAILED
    return PipelineOutcome.CANCELLED

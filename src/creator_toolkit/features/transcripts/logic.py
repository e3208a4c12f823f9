"""Audio transcription through AssemblyAI.

The transcript is data rather than a file, so it is kept in the job row and
returned directly instead of being relocated to storage.
"""

from creator_toolkit.features.jobs.logic import failure_result, run_job
from creator_toolkit.features.jobs.models import AUDIO_POLICY, JobRequest
from creator_toolkit.features.transcripts.models import TranscriptRequest, TranscriptResult
from creator_toolkit.platform.context import ToolContext
from creator_toolkit.platform.errors import ToolError, VendorFailureError

TOOL_ID = "transcripts"
VENDOR = "assemblyai"
TRANSCRIPT_CREDITS = 5
SPEECH_MODEL = "best"


async def transcribe(
    ctx: ToolContext, user_id: str, request: TranscriptRequest
) -> TranscriptResult:
    payload = {"audio_url": request.audio_url, "speaker_labels": request.speaker_labels}
    if request.language_code:
        payload["language_code"] = request.language_code
    else:
        payload["language_detection"] = True

    try:
        outcome = await run_job(
            ctx,
            JobRequest(
                user_id=user_id,
                tool_id=TOOL_ID,
                vendor=VENDOR,
                model=SPEECH_MODEL,
                input=payload,
                relocate_outputs=False,
            ),
            cost=TRANSCRIPT_CREDITS,
            policy=AUDIO_POLICY,
        )
        if not outcome.succeeded:
            raise VendorFailureError(
                f"Transcription failed: {outcome.error or 'Unknown error'}",
                job_id=outcome.record.id,
            )
    except ToolError as e:
        return failure_result(TranscriptResult, e)

    output = outcome.snapshot.output or {}
    return TranscriptResult(
        success=True,
        transcript_id=outcome.record.id,
        text=output.get("text"),
        words=output.get("words") or [],
        language_code=output.get("language_code"),
        audio_duration=output.get("audio_duration"),
        credits_used=TRANSCRIPT_CREDITS,
        warnings=outcome.warnings,
    )

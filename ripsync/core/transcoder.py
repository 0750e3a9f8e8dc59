"""Transcoder -- FLAC to MP3 through a decoder | encoder process pipe.

The decoder streams raw audio to its stdout, which is handed directly to the
encoder as stdin; the encoder writes to a named output file. The audio never
passes through this process: collecting the encoder's output here and
writing it ourselves produces MP3s with a wrong duration.
"""

from __future__ import annotations

import subprocess
from dataclasses import dataclass, field
from pathlib import Path

import mutagen
from mutagen.mp3 import MP3

from ripsync.core.directory_source import DirectorySource
from ripsync.core.errors import (
    DecodeError,
    EncodeError,
    OpenError,
    TagMigrationError,
    TagWriteError,
    TranscodeError,
    UnsupportedFormatError,
)
from ripsync.core.tag_facade import TagFacade
from ripsync.models.audio_file import AudioFile, ContainerKind
from ripsync.models.config import AppConfig
from ripsync.models.transcode_state import TranscodeAction, TranscodeOutcome, TranscodeState
from ripsync.utils.constants import STDIN_ARGUMENT
from ripsync.utils.file_utils import output_path_for, remove_quietly
from ripsync.utils.logger import get_logger

logger = get_logger("core.transcoder")


@dataclass
class DirectoryTranscodeResult:
    """Per-file results of transcoding one release directory."""

    source: DirectorySource
    outcomes: list[TranscodeOutcome] = field(default_factory=list)
    errors: list[TranscodeError] = field(default_factory=list)

    @property
    def transcoded(self) -> int:
        return sum(1 for o in self.outcomes if o.changed)

    @property
    def skipped(self) -> int:
        return sum(1 for o in self.outcomes if not o.changed)

    @property
    def ok(self) -> bool:
        return not self.errors


class Transcoder:
    """Converts FLAC files to MP3 and carries their tags across.

    Each call moves one file through SOURCE -> DECODING -> ENCODING ->
    TAG_MIGRATION -> DONE. MP3 input goes straight to DONE. Anything else
    raises ``UnsupportedFormatError``.

    Requires the decoder and encoder binaries (``flac`` and ``lame`` by
    default) on PATH.
    """

    def __init__(self, config: AppConfig | None = None, tag_facade: TagFacade | None = None) -> None:
        """Initialize the transcoder.

        Args:
            config: Application config (binaries, options, bitrate floor).
            tag_facade: Facade used to read and write tags.
        """
        self._config = config or AppConfig()
        self._tag_facade = tag_facade or TagFacade()

    def transcode(self, audio_file: AudioFile) -> TranscodeOutcome:
        """Transcode one file in place.

        On success a FLAC source is replaced by ``<path>.<target_ext>`` and
        ``audio_file`` is updated to describe the new file.

        Args:
            audio_file: File to transcode. Mutated on success.

        Returns:
            The outcome; ``outcome.changed`` is False for MP3 input.

        Raises:
            UnsupportedFormatError: For anything but FLAC or MP3.
            DecodeError: If the decoder cannot start or exits non-zero.
            EncodeError: If the encoder cannot start or exits non-zero.
            TagMigrationError: If the new file's tags cannot be written or
                the original cannot be removed.
        """
        source = audio_file.path
        kind = audio_file.container_kind
        logger.debug("%s: %s (%s)", TranscodeState.SOURCE.value, source.name, kind.value)

        if kind is ContainerKind.LOSSY_B:
            return self._check_lossy(audio_file)

        if kind is not ContainerKind.LOSSLESS_A:
            raise UnsupportedFormatError(source, f"no transcoder for {kind.value} input")

        output = output_path_for(source, self._config.target_extension)
        self._run_pipeline(source, output)

        logger.debug("%s: %s", TranscodeState.TAG_MIGRATION.value, output.name)
        migrated = self._migrate_tags(source, output)

        if not remove_quietly(source):
            raise TagMigrationError(
                source, f"transcoded to {output.name} but could not remove original", partial=True
            )

        audio_file.path = output
        audio_file.container_kind = ContainerKind.LOSSY_B
        audio_file.tags = migrated.tags
        logger.info("Transcoded %s -> %s", source.name, output.name)
        return TranscodeOutcome(source=source, output=output, action=TranscodeAction.TRANSCODED)

    def transcode_directory(
        self,
        source: DirectorySource,
        stop_on_error: bool | None = None,
    ) -> DirectoryTranscodeResult:
        """Transcode every file of a release directory, one after another.

        A failing file does not stop its siblings unless ``stop_on_error``
        is set. An unsupported format always stops the directory.

        Args:
            source: The release directory.
            stop_on_error: Stop at the first failure (defaults to config).

        Returns:
            Outcomes and errors for the directory.

        Raises:
            UnsupportedFormatError: If the directory holds a non-audio or
                unsupported file.
            TranscodeError: On the first failure when stopping on error.
        """
        if stop_on_error is None:
            stop_on_error = self._config.stop_on_error

        result = DirectoryTranscodeResult(source=source)
        for audio_file in source.audio_files():
            try:
                result.outcomes.append(self.transcode(audio_file))
            except UnsupportedFormatError:
                raise
            except TranscodeError as e:
                logger.error("%s", e)
                result.errors.append(e)
                if stop_on_error:
                    raise
        return result

    # --- Private ---

    def _check_lossy(self, audio_file: AudioFile) -> TranscodeOutcome:
        """Lossy input is never re-encoded; only its bitrate is reported."""
        bitrate = self._bitrate_kbps(audio_file.path)
        if bitrate is not None and bitrate < self._config.bitrate_floor_kbps:
            action = TranscodeAction.BELOW_FLOOR
            logger.debug(
                "%s is %d kbps, below the %d kbps floor; leaving it alone",
                audio_file.path.name, bitrate, self._config.bitrate_floor_kbps,
            )
        else:
            action = TranscodeAction.ALREADY_TARGET
        logger.debug("%s: %s (%s)", TranscodeState.DONE.value, audio_file.path.name, action.value)
        return TranscodeOutcome(
            source=audio_file.path,
            output=audio_file.path,
            action=action,
            bitrate_kbps=bitrate,
        )

    def _bitrate_kbps(self, path: Path) -> int | None:
        try:
            info = MP3(path).info
        except (mutagen.MutagenError, OSError) as e:
            logger.warning("Cannot read bitrate of %s: %s", path.name, e)
            return None
        return info.bitrate // 1000 if info.bitrate else None

    def _run_pipeline(self, source: Path, output: Path) -> None:
        """Run ``decoder | encoder`` and wait for both to exit.

        Raises:
            DecodeError: Decoder failed to start, has no stdout, or exited non-zero.
            EncodeError: Encoder failed to start or exited non-zero.
        """
        decode_cmd = [self._config.decoder_binary, str(source), *self._config.decoder_args]
        encode_cmd = [
            self._config.encoder_binary,
            *self._config.encoder_args,
            STDIN_ARGUMENT,
            str(output),
        ]

        logger.debug("%s: %r", TranscodeState.DECODING.value, decode_cmd)
        try:
            decoder = subprocess.Popen(decode_cmd, stdout=subprocess.PIPE)
        except OSError as e:
            raise DecodeError(source, f"cannot start {decode_cmd[0]}: {e}") from e

        if decoder.stdout is None:
            decoder.kill()
            decoder.wait()
            raise DecodeError(source, f"{decode_cmd[0]} has no stdout")

        logger.debug("%s: %r", TranscodeState.ENCODING.value, encode_cmd)
        try:
            encoder = subprocess.Popen(encode_cmd, stdin=decoder.stdout)
        except OSError as e:
            decoder.kill()
            decoder.wait()
            raise EncodeError(source, f"cannot start {encode_cmd[0]}: {e}") from e
        finally:
            # Only the encoder holds the read end now, so the decoder gets
            # SIGPIPE if the encoder dies.
            decoder.stdout.close()

        encode_status = encoder.wait()
        decode_status = decoder.wait()

        if decode_status != 0:
            partial = not remove_quietly(output)
            raise DecodeError(
                source, f"{decode_cmd[0]} exited with status {decode_status}", partial=partial
            )
        if encode_status != 0:
            partial = not remove_quietly(output)
            raise EncodeError(
                source, f"{encode_cmd[0]} exited with status {encode_status}", partial=partial
            )
        if not output.is_file():
            raise EncodeError(source, f"{encode_cmd[0]} did not create {output.name}")

    def _migrate_tags(self, source: Path, output: Path) -> AudioFile:
        """Re-read the source's Vorbis comments and write them onto ``output`` as ID3.

        Raises:
            TagMigrationError: If the comments cannot be read or written. The
                new file is left in place next to the untouched original.
        """
        migrated = AudioFile(path=output, container_kind=ContainerKind.LOSSY_B)
        try:
            migrated.import_foreign(self._tag_facade.read_comment_block(source))
            self._tag_facade.persist(migrated)
        except (OpenError, TagWriteError) as e:
            raise TagMigrationError(source, str(e), partial=True) from e
        return migrated

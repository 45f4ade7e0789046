# enginetdms/io/tdms_reader.py
from __future__ import annotations

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Iterator

from enginetdms.core.dataset import ParseDiagnostic
from enginetdms.core.datatypes import DataType
from enginetdms.core.exceptions import (
    InvalidTypeVector,
    ParseCancelled,
    PartialChunk,
    TdmsError,
)
from enginetdms.core.segment import Segment
from enginetdms.core.typevector import TypeVector

from .byte_source import ByteSource, FileByteSource
from .chunk_layout import ChunkLayout, compute_chunk_layout, select_channels
from .config import ReaderConfig
from .lead_in import read_segment
from .metadata_parser import ActiveChannel, SegmentMetadata, parse_segment_metadata
from .raw_decoder import ChunkEvent, iter_chunks, iter_selected_chunks
from .raw_index import ConcreteIndex
from .registry import ObjectRegistry


logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ParsedSegment:
    """A segment after its metadata phase: registry updated, chunk layout known."""
    segment: Segment
    metadata: SegmentMetadata
    layout: ChunkLayout | None = None
    # Error raised by the layout calculator (PartialChunk carries a usable layout).
    layout_error: TdmsError | None = None


@dataclass
class ParseResult:
    """Everything one full parse pass produced."""
    vectors: dict[str, TypeVector] = field(default_factory=dict)
    properties: dict[str, dict[str, Any]] = field(default_factory=dict)
    layouts: dict[str, ConcreteIndex] = field(default_factory=dict)
    segments: list[Segment] = field(default_factory=list)
    diagnostics: list[ParseDiagnostic] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not any(d.severity == "error" for d in self.diagnostics)


class TdmsReader:
    """
    One parse session over a TDMS byte source.

    Each pass (`iter_segments`, `iter_events`, `read`) starts from offset 0
    with a fresh object registry, so passes are independent and repeatable.

    Parameters
    ----------
    source:
        A ByteSource, or a path opened (and closed by `close()`) by the reader.
    config:
        Error policy and decode options, see ReaderConfig.
    should_cancel:
        Polled before each segment; returning True raises ParseCancelled.
    """

    def __init__(
        self,
        source: ByteSource | str | os.PathLike,
        config: ReaderConfig | None = None,
        *,
        should_cancel: Callable[[], bool] | None = None,
    ):
        if isinstance(source, (str, os.PathLike)):
            self._source: ByteSource = FileByteSource(source)
            self._owns_source = True
        else:
            self._source = source
            self._owns_source = False
        self.config = config or ReaderConfig()
        self._should_cancel = should_cancel
        self._registry = ObjectRegistry()
        self._diagnostics: list[ParseDiagnostic] = []
        self._segments: list[Segment] = []

    # ------------------------------------------------------------------
    # Resource handling
    # ------------------------------------------------------------------
    def close(self) -> None:
        if self._owns_source:
            close = getattr(self._source, "close", None)
            if close is not None:
                close()

    def __enter__(self) -> "TdmsReader":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Session state of the last pass
    # ------------------------------------------------------------------
    @property
    def registry(self) -> ObjectRegistry:
        return self._registry

    @property
    def diagnostics(self) -> list[ParseDiagnostic]:
        return list(self._diagnostics)

    @property
    def segments(self) -> list[Segment]:
        return list(self._segments)

    def _reset(self) -> None:
        self._registry = ObjectRegistry()
        self._diagnostics = []
        self._segments = []

    def _report(self, segment_index: int, severity: str, message: str, error: TdmsError | None = None) -> None:
        self._diagnostics.append(
            ParseDiagnostic(segment_index=segment_index, severity=severity, message=message, error=error)
        )

    # ------------------------------------------------------------------
    # Metadata phase
    # ------------------------------------------------------------------
    def iter_segments(self) -> Iterator[ParsedSegment]:
        """
        Scan segments from offset 0, running the metadata phase of each.

        Segment N's registry update and chunk layout are complete before it is
        yielded, and before segment N+1 is read. Structural errors propagate.
        """
        self._reset()
        file_length = self._source.file_length()
        offset = 0
        index = 0
        previous: tuple[ActiveChannel, ...] | None = None

        while offset < file_length:
            if self._should_cancel is not None and self._should_cancel():
                raise ParseCancelled(index)

            segment = read_segment(
                self._source,
                offset,
                index,
                file_length=file_length,
                validate_version=self.config.validate_version,
            )
            self._segments.append(segment)
            if segment.incomplete:
                self._report(index, "warning", "Last segment was not finalised; reading up to end of file.")

            meta_bytes = b""
            if segment.metadata_range is not None:
                start, end = segment.metadata_range
                meta_bytes = self._source.read_exact(start, end - start)
            metadata = parse_segment_metadata(meta_bytes, segment, self._registry, previous)
            for path in metadata.outside_active:
                message = f"Object {path} declared outside the persisting object list; its raw data is not read."
                logger.warning("segment %d: %s", index, message)
                self._report(index, "warning", message)
            # A segment declaring nothing leaves the object list as it was.
            if segment.has_metadata or segment.has_raw_data:
                previous = metadata.active

            layout: ChunkLayout | None = None
            layout_error: TdmsError | None = None
            if segment.has_raw_data:
                try:
                    layout = compute_chunk_layout(
                        index,
                        metadata.active,
                        segment.raw_data_length,
                        interleaved=segment.interleaved,
                    )
                except PartialChunk as e:
                    layout, layout_error = e.layout, e
                except TdmsError as e:
                    layout_error = e

            yield ParsedSegment(segment=segment, metadata=metadata, layout=layout, layout_error=layout_error)

            offset = segment.end
            index += 1

    # ------------------------------------------------------------------
    # Raw-data phase
    # ------------------------------------------------------------------
    def iter_events(self, paths: Iterable[str] | None = None) -> Iterator[ChunkEvent]:
        """
        Stream decoded values as (segment, chunk, channel) events in file order.

        With `paths`, only those channels are read and decoded: each segment's
        layout is narrowed to them and the source is read by their byte ranges.

        Under the "recover" policy, errors are recorded in `diagnostics` and
        everything decoded before them is kept.
        """
        executor = None
        if self.config.max_workers > 1:
            executor = ThreadPoolExecutor(max_workers=self.config.max_workers)
        try:
            yield from self._events(executor, None if paths is None else frozenset(paths))
        finally:
            if executor is not None:
                executor.shutdown(wait=True)

    def _events(self, executor, paths: frozenset[str] | None) -> Iterator[ChunkEvent]:
        recover = self.config.recover
        seen_types: dict[str, DataType] = {}
        segments = self.iter_segments()
        index = 0

        while True:
            try:
                parsed = next(segments)
            except StopIteration:
                return
            except ParseCancelled:
                raise
            except (TdmsError, OSError) as e:
                if not recover:
                    raise
                logger.warning("segment %d: parse aborted: %s", index, e)
                self._report(index, "error", f"Parsing aborted: {e}", e if isinstance(e, TdmsError) else None)
                return

            index = parsed.segment.index + 1
            yield from self._segment_events(parsed, seen_types, executor, recover, paths)

    def _segment_events(
        self,
        parsed: ParsedSegment,
        seen_types,
        executor,
        recover: bool,
        paths: frozenset[str] | None = None,
    ) -> Iterator[ChunkEvent]:
        seg = parsed.segment
        layout = parsed.layout

        if parsed.layout_error is not None:
            if not recover:
                raise parsed.layout_error
            logger.warning("segment %d: %s", seg.index, parsed.layout_error)
            self._report(seg.index, "error", str(parsed.layout_error), parsed.layout_error)
        if layout is None or layout.chunk_count == 0:
            return
        if paths is not None:
            layout = select_channels(layout, paths)
            if not layout.channels:
                return

        try:
            for ch in layout.channels:
                known = seen_types.setdefault(ch.path, ch.data_type)
                if known != ch.data_type:
                    raise InvalidTypeVector(
                        f"Channel {ch.path} changes data type from {known.name} to {ch.data_type.name}."
                    )
            start, _ = seg.raw_data_range  # type: ignore[misc]
            if paths is None:
                raw = self._source.read_exact(start, layout.data_length)
                chunks = iter_chunks(layout, raw, seg.byteorder, executor)
            else:
                def read(offset: int, length: int) -> bytes:
                    return self._source.read_exact(start + offset, length)
                chunks = iter_selected_chunks(layout, read, seg.byteorder, executor)
            for events in chunks:
                yield from events
        except TdmsError as e:
            if not recover:
                raise
            logger.warning("segment %d: raw data decode stopped: %s", seg.index, e)
            self._report(seg.index, "error", f"Raw data decode stopped: {e}", e)

    # ------------------------------------------------------------------
    # Whole-file pass
    # ------------------------------------------------------------------
    def read(self, paths: Iterable[str] | None = None) -> ParseResult:
        """
        Run a full pass and materialise one TypeVector per channel.

        `paths` restricts the raw-data phase to those channels; metadata and
        properties are still parsed for every object.
        """
        vectors: dict[str, TypeVector] = {}
        for event in self.iter_events(paths):
            vec = vectors.get(event.path)
            if vec is None:
                vec = vectors[event.path] = TypeVector(event.data_type)
            vec.append(event.values, event.data_type)

        registry = self._registry
        layouts = {p: registry.current(p) for p in registry.paths() if registry.current(p) is not None}
        result = ParseResult(
            vectors=vectors,
            properties={p: registry.properties(p) for p in registry.paths()},
            layouts=layouts,  # type: ignore[arg-type]
            segments=list(self._segments),
            diagnostics=list(self._diagnostics),
        )
        logger.debug(
            "parsed %d segment(s), %d object(s), %d channel(s) with data",
            len(result.segments), len(result.properties), len(vectors),
        )
        return result

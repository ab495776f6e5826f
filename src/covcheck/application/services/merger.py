"""Merger service: combine sessions collected by parallel workers.

Each worker owns a Session; the parent merges them pointwise before
aggregation. Code maps are not merged: the merged files start PENDING
so the next reconciliation recomputes every derived mark from the
union of raw hits.
"""

from __future__ import annotations

from covcheck.domain.model.configuration import CoverageConfig
from covcheck.domain.model.file_data import FileData
from covcheck.domain.model.session import Session


def merge_sessions(*sessions: Session, config: CoverageConfig | None = None) -> Session:
    """Merge sessions into a new one.

    Algorithm:
        1. executed marks: union per (file, line)
        2. call counts: summed per (file, start_line, name)
        3. discovered: True only if every source saw the file as discovered
        4. preloaded: True if any source preloaded the file
        5. unreadable: union

    Inputs are not modified. Source text is taken from the first
    session holding the file.

    Args:
        sessions: Worker sessions
        config: Config of the result, defaults to the first session's

    Returns:
        New inactive Session with PENDING code maps
    """
    if config is None:
        config = sessions[0].config if sessions else CoverageConfig()
    merged = Session.create(config)

    for session in sessions:
        merged.unreadable.update(session.unreadable)
        for path, data in session.files.items():
            target = merged.files.get(path)
            if target is None:
                target = FileData.from_source(
                    path,
                    data.source_text,
                    discovered=data.discovered,
                    preloaded=data.preloaded,
                )
                merged.files[path] = target
            else:
                target.discovered = target.discovered and data.discovered
                target.preloaded = target.preloaded or data.preloaded

            for line, ran in data.executed.items():
                if ran:
                    target.executed[line] = True
            for key, count in data.function_calls.items():
                target.function_calls[key] = target.function_calls.get(key, 0) + count

    return merged

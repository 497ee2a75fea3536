from __future__ import annotations

import hashlib
from datetime import datetime
from typing import Optional

import pandas as pd
import streamlit as st

from config import get_settings
from csv_io import AssignmentPayload, read_assignments, sample_csv_text
from export import COLUMN_LABELS, export_csv_bytes, export_xlsx_bytes, overlaps_to_frame
from logger import setup_logger
from overlap import compute_overlaps, pairs_for_employee

APP_SUBTITLE = "Upload employee project assignments → find who worked together the longest"


# ----------------------------
# Session state
# ----------------------------


def _load_into_state(data: bytes, *, source_name: str, upload_hash: str) -> None:
    """Hard-replace the active dataset and its results. No merging with the previous upload.

    Not cached: blank/"NULL" end dates resolve to the load time, so every
    load parses afresh against one pinned instant.
    """
    settings = get_settings()
    loaded_at = datetime.now().replace(microsecond=0)
    payload = read_assignments(
        data,
        source_name,
        clock=lambda: loaded_at,
        delimiter=settings.FIELD_DELIMITER,
        header_marker=settings.HEADER_MARKER,
        null_token=settings.NULL_TOKEN,
        dayfirst=settings.DATE_DAYFIRST,
    )

    st.session_state["_last_upload_hash"] = upload_hash
    st.session_state["_active_file_name"] = source_name
    st.session_state["_loaded_at"] = loaded_at.isoformat()
    st.session_state["payload"] = payload
    st.session_state["result"] = compute_overlaps(payload.records)


def _clear_uploader() -> None:
    """Re-mount the uploader with a fresh key so a previously chosen file stops winning reruns."""
    st.session_state["_uploader_epoch"] = int(st.session_state.get("_uploader_epoch", 0)) + 1


def _display(frame: pd.DataFrame) -> pd.DataFrame:
    return frame.rename(columns=COLUMN_LABELS)


def main() -> None:
    """Streamlit entry point: upload → compute → show tables and downloads."""
    settings = get_settings()
    setup_logger(level=settings.LOG_LEVEL)

    st.set_page_config(page_title=settings.APP_NAME, page_icon="🤝", layout="wide")
    st.title(settings.APP_NAME)
    st.caption(APP_SUBTITLE)

    with st.expander("Expected file format", expanded=False):
        st.markdown(
            """
One assignment per line, four comma-separated fields:

`EmpID, ProjectID, DateFrom, DateTo`

- A first line whose first field contains `EmpID` is treated as a header.
- `DateTo` may be `NULL` (or blank) for assignments that are still running; today is used.
- Dates can be ISO (`2023-01-31`) or written forms like `31 Jan 2023`.
- Lines without exactly four fields, or with non-numeric ids, are skipped.
            """
        )

    c1, c2 = st.columns([3, 1])
    with c1:
        uploaded = st.file_uploader(
            "Upload a CSV file with employee data",
            type=["csv", "txt", "xlsx"],
            key=f"csv_uploader_{st.session_state.get('_uploader_epoch', 0)}",
        )
    with c2:
        try_sample = st.button("Try sample now", use_container_width=True)

    data: Optional[bytes] = None
    source_name = ""
    if try_sample:
        data = sample_csv_text().encode("utf-8")
        source_name = "sample.csv"
    elif uploaded is not None:
        data = uploaded.getvalue()
        source_name = uploaded.name

    if data is not None:
        if len(data) > settings.MAX_UPLOAD_MB * 1024 * 1024:
            st.error(f"File is larger than {settings.MAX_UPLOAD_MB} MB.")
            st.stop()

        upload_hash = hashlib.md5(data).hexdigest()
        if st.session_state.get("_last_upload_hash") != upload_hash:
            try:
                _load_into_state(data, source_name=source_name, upload_hash=upload_hash)
            except ValueError as e:
                st.error(str(e))
                st.stop()

        if try_sample and uploaded is not None:
            # The sample replaces the uploaded file; drop the file from the widget too.
            _clear_uploader()
            st.rerun()

    if "result" not in st.session_state:
        st.info("Upload a file, or click 'Try sample now' for a working demo.")
        st.stop()

    payload: AssignmentPayload = st.session_state["payload"]
    result = st.session_state["result"]

    m1, m2, m3, m4 = st.columns(4)
    m1.metric("File", st.session_state.get("_active_file_name", ""))
    m2.metric("Assignments read", len(payload.records))
    m3.metric("Rows skipped", payload.dropped)
    m4.metric("Overlapping pairs", len(result.all_pairs))
    st.caption(
        f"Loaded hash: {st.session_state['_last_upload_hash'][:8]} • Loaded at: {st.session_state['_loaded_at']}"
    )

    st.divider()
    st.header("Pair of employees who have worked together the longest")
    if result.best is None:
        st.warning("No two employees worked on the same project at the same time.")
    else:
        best = result.best
        st.success(
            f"Employees **{best.employee_a}** and **{best.employee_b}**: "
            f"{best.overlap_days} day(s) on a single project."
        )
        maximal_df = overlaps_to_frame(result, maximal_only=True)
        st.dataframe(_display(maximal_df), hide_index=True, use_container_width=True)

    st.header("All pairs of employees who have worked together on at least one project")
    all_df = overlaps_to_frame(result)
    st.dataframe(_display(all_df), hide_index=True, use_container_width=True)

    d1, d2 = st.columns(2)
    with d1:
        st.download_button(
            "Download CSV",
            data=export_csv_bytes(all_df),
            file_name="employee_pairs.csv",
            mime="text/csv",
            use_container_width=True,
            disabled=all_df.empty,
        )
    with d2:
        st.download_button(
            "Download Excel",
            data=export_xlsx_bytes(all_df),
            file_name="employee_pairs.xlsx",
            mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            use_container_width=True,
            disabled=all_df.empty,
        )

    employee_ids = sorted({r.employee_id for r in payload.records})
    if employee_ids:
        with st.expander("Look up one employee", expanded=False):
            emp = st.selectbox("Employee ID", employee_ids)
            rows = pairs_for_employee(result, int(emp))
            if rows:
                st.dataframe(
                    pd.DataFrame([p.model_dump() for p in rows]),
                    hide_index=True,
                    use_container_width=True,
                )
            else:
                st.caption("No overlaps for this employee.")

    if payload.issues:
        with st.expander(f"Skipped rows ({payload.dropped})", expanded=False):
            for issue in payload.issues:
                st.write(f"- Line {issue.line_no}: {issue.reason}: `{issue.raw}`")


if __name__ == "__main__":
    main()

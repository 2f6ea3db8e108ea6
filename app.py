"""
APA 7 Checker - Streamlit GUI

Drag-and-drop a Word document and get an APA 7 compliance report.
Run with: streamlit run app.py
"""
import json
import streamlit as st
from pathlib import Path

from apa_checker.errors import InvalidInput
from apa_checker.ir import Finding
from apa_checker.pipeline import validate_document
from apa_checker.rules.load_rules import load_rule_pack, weights
from apa_checker.scoring import active_issues, compute_score, group_by_severity
from apa_checker.upload import check_upload

st.set_page_config(
    page_title="APA 7 Checker",
    page_icon="📄",
    layout="centered",
)

st.title("📄 APA 7 Formatter & Validator")
st.markdown("Check fonts, spacing, title page, abstract, headings, citations and references.")

uploaded_file = st.file_uploader(
    "Drop your Word document here",
    type=["docx"],
    help="Drag and drop a .docx file or click to browse",
)

SEVERITY_LABELS = {
    "error": "❌ Errors - Must Fix",
    "warning": "⚠️ Warnings - Should Fix",
    "suggestion": "💡 Suggestions",
}

if uploaded_file:
    if st.session_state.get("filename") != uploaded_file.name:
        # new file: forget the last report and any dismissals
        for key in ["report", "filename", "dismissed"]:
            st.session_state.pop(key, None)

    if st.button("✅ Check Formatting", type="primary", use_container_width=True):
        data = uploaded_file.getvalue()
        try:
            check_upload(uploaded_file.name, len(data))
        except InvalidInput as e:
            st.error(str(e))
        else:
            with st.spinner("Analyzing document..."):
                report = validate_document(data, uploaded_file.name)
            st.session_state["report"] = report.to_dict()
            st.session_state["filename"] = uploaded_file.name
            st.session_state["dismissed"] = set()

if "report" in st.session_state:
    payload = st.session_state["report"]
    dismissed = st.session_state["dismissed"]
    issues = [Finding(**i) for i in payload["issues"]]
    active = active_issues(issues, dismissed)
    if any(i.id == "document-parse-failed" for i in issues):
        score = payload["score"]
    else:
        score = compute_score(active, weights(load_rule_pack()))

    if score >= 90:
        st.success(f"**APA Score: {score}%** Excellent formatting!")
    elif score >= 70:
        st.warning(f"**APA Score: {score}%** Good, but needs some fixes")
    else:
        st.error(f"**APA Score: {score}%** Several formatting issues to address")

    grouped = group_by_severity(active)
    col1, col2, col3 = st.columns(3)
    col1.metric("Errors", len(grouped["error"]))
    col2.metric("Warnings", len(grouped["warning"]))
    col3.metric("Passed", len(payload["passing"]))

    if payload["passing"]:
        with st.expander(f"✅ What's working well ({len(payload['passing'])})", expanded=False):
            for item in payload["passing"]:
                st.markdown(f"**{item['message']}**  \n{item['details']}")

    for sev in ["error", "warning", "suggestion"]:
        group = [i for i in issues if i.severity == sev]
        if not group:
            continue
        st.markdown(f"### {SEVERITY_LABELS[sev]} ({len([i for i in group if i.id not in dismissed])})")
        for issue in group:
            dismiss = st.checkbox(
                f"**{issue.message}**: {issue.details}",
                value=issue.id in dismissed,
                key=f"dismiss-{issue.id}",
                help="Tick to dismiss this issue and leave it out of the score",
            )
            if dismiss and issue.id not in dismissed:
                dismissed.add(issue.id)
                st.rerun()
            elif not dismiss and issue.id in dismissed:
                dismissed.discard(issue.id)
                st.rerun()

    if not issues:
        st.balloons()
        st.markdown("🎉 **Perfect APA formatting!** Your document follows all checked APA 7 guidelines.")

    with st.expander("🔧 Debug information", expanded=False):
        st.json(payload["debug"])

    st.download_button(
        "📋 Download Report (JSON)",
        json.dumps(payload, indent=2, ensure_ascii=False),
        file_name=f"{Path(payload['filename']).stem}.apa.json",
        mime="application/json",
    )

    if st.button("Check Another Document"):
        for key in ["report", "filename", "dismissed"]:
            st.session_state.pop(key, None)
        st.rerun()

elif not uploaded_file:
    st.info("Upload a Word document (.docx) to get started.")

st.markdown("---")
st.markdown("*Checks follow the APA Publication Manual, 7th edition. Dismissed issues are not counted in the score.*")

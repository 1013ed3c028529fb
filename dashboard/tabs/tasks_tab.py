import streamlit as st

from dashboard.constants import PRIORITIES, PRIORITY_META, TASK_STATUSES, TASK_STATUS_LABELS
from dashboard.data import repositories


def _apply_suggestion():
    choice = st.session_state.get("tasks.suggestion")
    if not choice:
        return
    for item in st.session_state.get("cache.tasks.suggestions", []):
        if item["email"] == choice:
            st.session_state["tasks.assignee_email"] = item["email"]
            st.session_state["tasks.assignee_name"] = item.get("name") or ""


def _render_add_form():
    st.text_area(
        "New task(s)",
        key="tasks.new_title",
        placeholder="One task, or several separated by new lines, commas or semicolons",
        height=90,
    )
    cols = st.columns(3)
    cols[0].selectbox("Priority", PRIORITIES, index=1, key="tasks.new_priority")
    cols[1].date_input("Due date", value=None, key="tasks.new_due")
    cols[2].checkbox("Add to Google Calendar", key="tasks.new_sync")

    with st.expander("Details and assignee (single task only)"):
        st.text_area("Description", key="tasks.new_description", height=80)
        query = st.text_input("Assign to (email)", key="tasks.assignee_email")
        st.text_input("Assignee name", key="tasks.assignee_name")
        try:
            suggestions = repositories.assignee_suggestions(query or None)
        except RuntimeError:
            suggestions = []
        st.session_state["cache.tasks.suggestions"] = suggestions
        if suggestions:
            st.selectbox(
                "Recent assignees",
                [""] + [item["email"] for item in suggestions],
                key="tasks.suggestion",
                on_change=_apply_suggestion,
                format_func=lambda value: value or "Pick a previous assignee",
            )

    if st.button("Add", type="primary", key="tasks.add"):
        title = (st.session_state.get("tasks.new_title") or "").strip()
        if not title:
            st.toast("Please enter a task title.")
            return
        try:
            created = repositories.add_tasks(
                title,
                priority=st.session_state.get("tasks.new_priority"),
                due_date=st.session_state.get("tasks.new_due"),
                description=st.session_state.get("tasks.new_description"),
                assignee_email=st.session_state.get("tasks.assignee_email"),
                assignee_name=st.session_state.get("tasks.assignee_name"),
                sync=st.session_state.get("tasks.new_sync"),
            )
        except RuntimeError as exc:
            st.error(f"Could not add task: {exc}")
            return
        st.toast(f"Added {len(created)} task{'s' if len(created) != 1 else ''}.")
        for key in ("tasks.new_title", "tasks.new_description", "tasks.assignee_email", "tasks.assignee_name"):
            st.session_state.pop(key, None)
        st.rerun(scope="fragment")


def _render_task_row(task):
    marker = PRIORITY_META.get(task.get("priority"), {}).get("marker", "")
    cols = st.columns([6, 2, 1])
    with cols[0]:
        title = f"~~{task['title']}~~" if task["status"] == "completed" else f"**{task['title']}**"
        st.markdown(f"{marker} {title}")
        meta = []
        if task.get("due_date"):
            meta.append(f"due {task['due_date']}")
        if task.get("assigned_to_email"):
            meta.append(f"assigned to {task.get('assigned_to_name') or task['assigned_to_email']}")
        if task.get("google_event_id"):
            meta.append("📅 synced")
        if meta:
            st.caption(" · ".join(meta))
    if cols[1].button(TASK_STATUS_LABELS.get(task["status"], task["status"]), key=f"tasks.cycle.{task['id']}"):
        repositories.cycle_task_status(task["id"])
        st.rerun(scope="fragment")
    if cols[2].button("🗑️", key=f"tasks.delete.{task['id']}"):
        repositories.delete_task(task["id"])
        st.rerun(scope="fragment")


def render_tasks_tab(ctx):
    st.subheader("Tasks")
    _render_add_form()
    st.divider()

    cols = st.columns(3)
    status = cols[0].selectbox("Status", ["all"] + TASK_STATUSES, key="tasks.filter_status")
    priority = cols[1].selectbox("Priority", ["all"] + PRIORITIES, key="tasks.filter_priority")
    search = cols[2].text_input("Search", key="tasks.filter_search")

    tasks = repositories.list_tasks(
        status=None if status == "all" else status,
        priority=None if priority == "all" else priority,
        search=search or None,
    )
    if not tasks:
        st.caption("No tasks match these filters.")
        return
    completed = sum(1 for task in tasks if task["status"] == "completed")
    st.caption(f"{completed} of {len(tasks)} completed")
    for task in tasks:
        _render_task_row(task)

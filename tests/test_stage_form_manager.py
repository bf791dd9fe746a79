"""Tests for StageFormManager: rendering, navigation, debounce, drafts and submission."""

import pytest
from PyQt6.QtTest import QTest
from PyQt6.QtWidgets import QApplication, QFrame, QLabel, QMessageBox

from conftest import RecordingDrafts, RecordingSubmission
from pyqt_stageform.forms.stage_form_manager import FormManagerConfig, StageFormManager
from pyqt_stageform.protocols.form_config import StageFormConfig
from pyqt_stageform.protocols.form_policy import DraftSnapshot, ValidationPolicy
from pyqt_stageform.services.draft_store import MemoryDraftStore


def control(form, name):
    return form.page.control_for(name).control


def commit_text(form, name, text):
    """Type text and leave the field, as a user would."""
    widget = control(form, name)
    widget.setText(text)
    widget.editingFinished.emit()


def fill_owner(form):
    commit_text(form, "name", "Ada")
    commit_text(form, "email", "ada@example.com")


def step_states(form):
    return [step.property("stepState") for step in form.indicator.steps]


def wait_until_idle(form, timeout_ms=3000):
    waited = 0
    while form.is_submitting and waited < timeout_ms:
        QTest.qWait(20)
        waited += 20


class OnlyWholeFormFails(ValidationPolicy):
    """Stage checks pass; the whole-form check reports a missing email."""

    def validate_stage(self, schema, state, stage_index):
        if stage_index is None:
            return {"email": ""}
        return {}


# ========== RENDERING ==========

def test_initial_render(make_form, pet_schema):
    form = make_form(pet_schema)

    assert form.page.widget.objectName() == "f--stage-0"
    assert form.current_stage == 0
    assert form.navigation.furthest_stage_reached == 0
    assert form.controls.prev_button.isHidden()
    assert not form.controls.next_button.isHidden()
    assert form.controls.submit_button.isHidden()
    assert not form.controls.reset_button.isHidden()
    assert step_states(form) == ["current", "undone", "undone"]
    assert form.indicator.count_text == "Stage 1 of 3"
    assert form.indicator.title_text == "Owner"


def test_scoped_identifiers(make_form, pet_schema):
    form = make_form(pet_schema)

    assert control(form, "name").objectName() == "f--name"
    assert control(form, "name").property("name") == "name"
    helper = form.findChild(QLabel, "f--email-helper")
    assert helper is not None and helper.text() == "We never share it"
    assert form.findChild(QLabel, "f--email-error") is not None

    fill_owner(form)
    form.go_next()
    size = control(form, "size")
    assert [b.objectName() for b in size.buttons] == ["f--size-small", "f--size-large-dog"]
    assert all(b.property("name") == "f--size" for b in size.buttons)


def test_single_stage_form_has_no_indicator(make_form, controller_schema):
    form = make_form(controller_schema)

    assert form.page.widget.objectName() == "f--form"
    assert form.indicator.isHidden()
    assert form.indicator.steps == []
    assert not form.controls.submit_button.isHidden()
    assert form.controls.next_button.isHidden()
    assert form.go_next() is False


# ========== NAVIGATION ==========

def test_next_shows_errors_on_invalid_stage(make_form, pet_schema):
    form = make_form(pet_schema)

    assert form.go_next() is False
    assert form.current_stage == 0

    email = form.page.control_for("email")
    assert email.is_invalid
    assert email.error_label.text() == "This field is required"
    assert not email.error_label.isHidden()
    assert email.control.accessibleDescription() == "This field is required We never share it"
    assert form.page.control_for("name").is_invalid


def test_next_advances_and_announces(make_form, pet_schema):
    form = make_form(pet_schema)
    stages = []
    announcements = []
    form.stage_changed.connect(stages.append)
    form.announcement.connect(announcements.append)

    fill_owner(form)
    assert form.go_next() is True
    QTest.qWait(20)

    assert form.current_stage == 1
    assert form.navigation.furthest_stage_reached == 1
    assert stages == [1]
    assert announcements == ["Stage 2 of 3 - Pet"]
    assert form.live_region.text() == "Stage 2 of 3 - Pet"
    assert step_states(form) == ["done", "current", "undone"]


def test_previous_keeps_progress_and_allows_jump_back(make_form, pet_schema):
    form = make_form(pet_schema)
    fill_owner(form)
    form.go_next()

    form.go_previous()
    assert form.current_stage == 0
    assert form.navigation.furthest_stage_reached == 1
    assert step_states(form) == ["current", "next", "undone"]
    assert form.indicator.steps[1].isEnabled()
    assert not form.indicator.steps[2].isEnabled()

    form.indicator.steps[1].click()
    assert form.current_stage == 1


def test_jump_to_locked_stage_is_rejected(make_form, pet_schema):
    form = make_form(pet_schema)

    assert form.jump_to(2) is False
    assert form.jump_to(-1) is False
    assert form.current_stage == 0


def test_furthest_never_behind_current(make_form, pet_schema):
    form = make_form(pet_schema)
    operations = [
        lambda: fill_owner(form),
        form.go_next,
        form.go_previous,
        lambda: form.jump_to(1),
        lambda: form.render_stage(99),
        lambda: form.render_stage(-5),
        form.go_next,
        form.go_next,
        form.reset,
    ]
    for operation in operations:
        operation()
        nav = form.navigation
        assert 0 <= nav.current_stage < 3
        assert nav.furthest_stage_reached >= nav.current_stage


def test_summary_stage_lists_answers(make_form, pet_schema):
    form = make_form(pet_schema)
    fill_owner(form)
    form.go_next()

    control(form, "hasPet").setChecked(True)
    commit_text(form, "petName", "Rex")
    control(form, "size").button_for("large dog").click()
    assert form.go_next() is True

    assert form.page.is_summary
    assert form.page.widget.objectName() == "f--summary"
    assert form.findChild(QLabel, "f--summary-value-hasPet").text() == "Yes"
    assert form.findChild(QLabel, "f--summary-value-petName").text() == "Rex"
    assert form.findChild(QLabel, "f--summary-value-size").text() == "large dog"
    assert not form.controls.submit_button.isHidden()
    assert form.controls.next_button.isHidden()


def test_optional_summary_allows_direct_submit(make_form):
    schema = {
        "id": "opt",
        "stages": [
            {"id": "a", "label": "A", "fields": [{"type": "text", "name": "x"}]},
            {"id": "b", "label": "B", "fields": [{"type": "text", "name": "y"}]},
            {"id": "s", "label": "Summary", "type": "summary", "optional": True},
        ],
    }
    submission = RecordingSubmission()
    form = make_form(schema, submission=submission)

    assert form.go_next() is True
    assert form.current_stage == 1
    assert not form.controls.submit_button.isHidden()
    assert not form.controls.next_button.isHidden()
    assert form.navigation.furthest_stage_reached == 2
    assert step_states(form)[2] == "next"
    assert form.indicator.steps[2].isEnabled()

    assert form.submit() is True
    assert submission.payloads == [{}]


def test_required_summary_hides_submit_on_last_data_stage(make_form, pet_schema):
    form = make_form(pet_schema)
    fill_owner(form)
    form.go_next()

    assert form.controls.submit_button.isHidden()
    assert not form.controls.next_button.isHidden()
    assert form.navigation.furthest_stage_reached == 1


# ========== VISIBILITY AND PRUNING ==========

def test_checkbox_reveals_and_prunes_dependent_field(make_form, pet_schema):
    form = make_form(pet_schema)
    fill_owner(form)
    form.go_next()
    assert form.page.control_for("petName") is None

    control(form, "hasPet").setChecked(True)
    assert form.page.control_for("petName") is not None

    commit_text(form, "petName", "Rex")
    assert form.state["petName"] == "Rex"

    control(form, "hasPet").setChecked(False)
    assert form.page.control_for("petName") is None
    assert "petName" not in form.state

    control(form, "hasPet").setChecked(True)
    assert control(form, "petName").text() == ""
    assert "petName" not in form.state


def test_state_changed_signal(make_form, controller_schema):
    form = make_form(controller_schema)
    changes = []
    form.state_changed.connect(lambda name, value: changes.append((name, value)))

    commit_text(form, "notes", "hello")

    assert changes == [("notes", "hello")]


# ========== DEBOUNCED RENDERING ==========

def test_keystrokes_in_controller_field_render_once(make_form, controller_schema):
    form = make_form(controller_schema)
    start = form.generation.number
    code = control(form, "code")

    for text in ["o", "op", "ope", "open", "opena", "open", "ope", "op", "ope", "open"]:
        code.textEdited.emit(text)

    assert form.generation.number == start
    assert form.pending_renders() == ["code"]
    assert form.state["code"] == "open"
    assert form.page.control_for("secret") is None

    QTest.qWait(200)

    assert form.generation.number == start + 1
    assert form.pending_renders() == []
    assert form.page.control_for("secret") is not None


def test_keystrokes_in_other_fields_do_not_schedule(make_form, controller_schema):
    form = make_form(controller_schema)
    start = form.generation.number

    control(form, "notes").textEdited.emit("x")

    assert form.pending_renders() == []
    assert "notes" not in form.state
    QTest.qWait(100)
    assert form.generation.number == start


def test_commit_supersedes_pending_render(make_form, controller_schema):
    form = make_form(controller_schema)
    start = form.generation.number
    code = control(form, "code")

    code.textEdited.emit("open")
    code.setText("open")
    code.editingFinished.emit()

    assert form.pending_renders() == []
    assert form.generation.number == start + 1
    assert form.page.control_for("secret") is not None

    QTest.qWait(150)
    assert form.generation.number == start + 1


def test_events_from_replaced_controls_are_ignored(make_form, controller_schema):
    form = make_form(controller_schema)
    old = control(form, "notes")

    old.setText("first")
    old.editingFinished.emit()
    assert form.state == {"notes": "first"}

    generation = form.generation.number
    old.setText("stale")
    old.editingFinished.emit()
    old.textEdited.emit("stale")

    assert form.state == {"notes": "first"}
    assert form.generation.number == generation


# ========== SCHEMA LOADING ==========

def test_loading_new_schema_discards_pending_work(make_form, controller_schema):
    form = make_form(controller_schema)
    control(form, "code").textEdited.emit("op")
    assert form.pending_renders() == ["code"]

    other = {
        "id": "other",
        "stages": [
            {"id": "one", "label": "One", "fields": [{"type": "text", "name": "code"}]},
            {"id": "two", "label": "Two", "fields": [{"type": "text", "name": "more"}]},
        ],
    }
    assert form.load_schema(other) is True
    generation = form.generation.number

    assert form.state == {}
    assert form.pending_renders() == []
    QTest.qWait(150)
    assert form.generation.number == generation
    assert control(form, "code").text() == ""


def test_loading_new_schema_resets_navigation(make_form, pet_schema):
    form = make_form(pet_schema)
    fill_owner(form)
    form.go_next()

    other = {
        "id": "other",
        "stages": [
            {"id": "one", "label": "One", "fields": [{"type": "text", "name": "name"}]},
            {"id": "two", "label": "Two", "fields": [{"type": "text", "name": "more"}]},
        ],
    }
    form.load_schema(other)

    assert form.current_stage == 0
    assert form.navigation.furthest_stage_reached == 0
    assert form.state == {}
    assert control(form, "name").text() == ""
    assert step_states(form) == ["current", "undone"]


def test_reloading_same_schema_starts_over(make_form, pet_schema):
    drafts = MemoryDraftStore()
    form = make_form(pet_schema, drafts=drafts)
    commit_text(form, "name", "A")
    commit_text(form, "email", "a@b.co")
    form.go_next()
    assert drafts.load_draft("pets") is not None

    assert form.load_schema(pet_schema) is True

    assert form.state == {}
    assert form.current_stage == 0
    assert form.navigation.furthest_stage_reached == 0
    assert control(form, "name").text() == ""
    assert step_states(form) == ["current", "undone", "undone"]


def test_invalid_schema_shows_blocking_error(make_form):
    form = make_form()

    assert form.load_schema({"id": "broken", "stages": "nope"}) is False

    assert form.schema is None
    alert = form.findChild(QFrame, "f--schema-error")
    assert alert is not None
    assert alert.property("alert") == "danger"
    assert form.findChild(QLabel, "f--schema-error-message").text()
    assert form.controls.isHidden()
    assert form.indicator.isHidden()
    assert form.submit() is False


def test_cyclic_show_if_is_rejected(make_form):
    form = make_form()
    schema = {
        "id": "cycle",
        "fields": [
            {"type": "text", "name": "a", "showIf": {"field": "b", "equals": "x"}},
            {"type": "text", "name": "b", "showIf": {"field": "a", "equals": "y"}},
        ],
    }

    assert form.load_schema(schema) is False
    assert "Circular" in form.findChild(QLabel, "f--schema-error-message").text()


def test_valid_schema_after_error_restores_form(make_form, pet_schema):
    form = make_form()
    form.load_schema({"id": "broken", "stages": "nope"})

    assert form.load_schema(pet_schema) is True
    assert form.findChild(QFrame, "f--schema-error") is None
    assert not form.controls.isHidden()
    assert form.page.widget.objectName() == "f--stage-0"


def test_show_error_uses_warning_tone(make_form, controller_schema):
    form = make_form(controller_schema)

    form.show_error("Invalid schema")

    alert = form.findChild(QFrame, "f--schema-error")
    assert alert.property("alert") == "warning"
    assert form.findChild(QLabel, "f--schema-error-message").text() == "Invalid schema"
    assert form.controls.isHidden()


def test_load_schema_file(make_form, tmp_path, pet_schema):
    import json
    path = tmp_path / "pets.json"
    path.write_text(json.dumps(pet_schema), encoding="utf-8")
    form = make_form()

    assert form.load_schema_file(path) is True
    assert form.schema.id == "pets"

    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")
    assert form.load_schema_file(broken) is False
    assert form.findChild(QFrame, "f--schema-error") is not None


# ========== DRAFTS ==========

def test_draft_restore_filters_and_prunes(make_form, pet_schema):
    drafts = RecordingDrafts(DraftSnapshot(
        schema_id="pets",
        state={"name": "Ada", "petName": "Rex", "mystery": 1},
        current_stage=1,
    ))
    form = make_form(drafts=drafts)
    form.load_schema(pet_schema, restore_draft=True)

    assert form.state == {"name": "Ada"}
    assert form.current_stage == 1
    assert form.navigation.furthest_stage_reached == 1
    assert form.page.widget.objectName() == "f--stage-1"


def test_draft_restore_clamps_stage(make_form, pet_schema):
    drafts = RecordingDrafts(DraftSnapshot(schema_id="pets", state={}, current_stage=42))
    form = make_form(drafts=drafts)
    form.load_schema(pet_schema, restore_draft=True)

    assert form.current_stage == 2


def test_drafts_are_not_restored_by_default(make_form, pet_schema):
    drafts = RecordingDrafts(DraftSnapshot(schema_id="pets", state={"name": "Ada"}, current_stage=1))
    form = make_form(drafts=drafts)

    form.load_schema(pet_schema)

    assert form.state == {}
    assert form.current_stage == 0


def test_drafts_saved_on_change(make_form, pet_schema):
    drafts = RecordingDrafts()
    form = make_form(pet_schema, drafts=drafts)
    assert drafts.saved == []

    commit_text(form, "name", "Ada")

    assert drafts.saved[-1].schema_id == "pets"
    assert drafts.saved[-1].state == {"name": "Ada"}
    assert drafts.saved[-1].current_stage == 0


# ========== SUBMISSION ==========

def test_submit_success(make_form, controller_schema):
    drafts = RecordingDrafts()
    submission = RecordingSubmission()
    form = make_form(controller_schema, drafts=drafts, submission=submission)
    payloads = []
    form.submitted.connect(payloads.append)

    commit_text(form, "code", "open")
    commit_text(form, "secret", "s3")
    commit_text(form, "notes", "n")
    commit_text(form, "code", "closed")

    assert form.submit() is True
    assert submission.payloads == [{"code": "closed", "notes": "n"}]
    assert payloads == [{"code": "closed", "notes": "n"}]
    assert form.feedback.tone == "success"
    assert form.feedback.message == "The form was submitted successfully."
    assert drafts.cleared == ["contact"]


def test_submit_rejected_by_policy(make_form, controller_schema):
    from pyqt_stageform.protocols.form_policy import SubmissionResult
    submission = RecordingSubmission(result=SubmissionResult(False, "Server is down"))
    form = make_form(controller_schema, submission=submission)
    failures = []
    form.submission_failed.connect(failures.append)

    assert form.submit() is True

    assert form.feedback.tone == "danger"
    assert form.feedback.message == "Server is down"
    assert failures == ["Server is down"]
    assert not form.is_submitting


def test_submit_policy_exception(make_form, controller_schema):
    drafts = RecordingDrafts()
    form = make_form(controller_schema, drafts=drafts, submission=RecordingSubmission(error=RuntimeError("boom")))

    assert form.submit() is True

    assert form.feedback.tone == "danger"
    assert form.feedback.message == "Submission failed. Please try again."
    assert drafts.cleared == []
    assert not form.controls.is_busy


def test_submit_navigates_to_first_invalid_stage(make_form, pet_schema):
    submission = RecordingSubmission()
    form = make_form(pet_schema, validation=OnlyWholeFormFails(), submission=submission)
    form.go_next()
    assert form.current_stage == 1

    assert form.submit() is False

    assert form.current_stage == 0
    email = form.page.control_for("email")
    assert email.is_invalid
    assert email.error_label.text() == "This field is required"
    assert submission.payloads == []


def test_submit_single_stage_shows_errors(make_form):
    schema = {"id": "s", "fields": [{"type": "email", "name": "email", "label": "Email", "required": True}]}
    submission = RecordingSubmission()
    form = make_form(schema, submission=submission)

    assert form.submit() is False

    assert form.page.control_for("email").is_invalid
    assert submission.payloads == []

    commit_text(form, "email", "not-an-email")
    assert form.submit() is False
    assert form.page.control_for("email").error_label.text() == "The value has an invalid format"


def test_background_submission_busy_state(make_form, controller_schema):
    config = StageFormConfig(
        render_debounce_ms=40, announce_delay_ms=0, background_submission=True, confirm_reset=False,
    )
    submission = RecordingSubmission(delay_s=0.2)
    form = make_form(controller_schema, submission=submission, config=config)
    payloads = []
    form.submitted.connect(payloads.append)

    assert form.submit() is True

    assert form.is_submitting
    assert form.controls.is_busy
    assert all(not button.isEnabled() for button in form.controls.buttons)
    assert not form.page.widget.isEnabled()
    assert form.submit() is False

    wait_until_idle(form)

    assert not form.is_submitting
    assert payloads == [{}]
    assert form.feedback.tone == "success"
    assert all(button.isEnabled() for button in form.controls.buttons)
    assert form.page.widget.isEnabled()


def _background_config():
    return StageFormConfig(
        render_debounce_ms=40, announce_delay_ms=0, background_submission=True, confirm_reset=False,
    )


def test_queued_submission_outcome_does_not_reach_new_schema(make_form, controller_schema, pet_schema):
    drafts = RecordingDrafts()
    form = make_form(controller_schema, drafts=drafts, config=_background_config())
    payloads, failures = [], []
    form.submitted.connect(payloads.append)
    form.submission_failed.connect(failures.append)

    assert form.submit() is True
    # The worker finishes and queues its result before the GUI thread sees it
    form._task_manager.current_task.wait(2000)

    assert form.load_schema(pet_schema) is True
    QTest.qWait(100)

    assert form.schema.id == "pets"
    assert payloads == []
    assert failures == []
    assert drafts.cleared == []
    assert form.feedback.tone == ""
    assert not form.is_submitting
    assert all(button.isEnabled() for button in form.controls.buttons)


def test_reset_abandons_outstanding_submission(make_form, controller_schema):
    drafts = RecordingDrafts()
    submission = RecordingSubmission(delay_s=0.3)
    form = make_form(controller_schema, drafts=drafts, submission=submission, config=_background_config())
    payloads = []
    form.submitted.connect(payloads.append)

    assert form.submit() is True
    form.reset()

    assert not form.is_submitting
    assert all(button.isEnabled() for button in form.controls.buttons)
    QTest.qWait(500)

    assert submission.payloads == [{}]
    assert payloads == []
    assert drafts.cleared == ["contact"]
    assert form.feedback.tone == ""


# ========== RESET ==========

def test_reset_clears_state_and_announces(make_form, pet_schema):
    drafts = RecordingDrafts()
    form = make_form(pet_schema, drafts=drafts)
    announcements = []
    form.announcement.connect(announcements.append)
    fill_owner(form)
    form.go_next()
    QTest.qWait(20)
    announcements.clear()

    form.reset()
    QTest.qWait(20)

    assert form.state == {}
    assert form.current_stage == 0
    assert form.navigation.furthest_stage_reached == 0
    assert drafts.cleared == ["pets"]
    assert announcements == ["The form was reset"]
    assert control(form, "name").text() == ""


def test_reset_button_respects_confirmation(make_form, pet_schema, monkeypatch):
    config = StageFormConfig(render_debounce_ms=40, announce_delay_ms=0, background_submission=False)
    form = make_form(pet_schema, config=config)
    commit_text(form, "name", "Ada")

    monkeypatch.setattr(QMessageBox, "question", lambda *args, **kwargs: QMessageBox.StandardButton.No)
    form.controls.reset_button.click()
    assert form.state == {"name": "Ada"}

    monkeypatch.setattr(QMessageBox, "question", lambda *args, **kwargs: QMessageBox.StandardButton.Yes)
    form.controls.reset_button.click()
    assert form.state == {}


# ========== FOCUS ==========

def _show_active(form):
    form.show()
    form.activateWindow()
    if not QTest.qWaitForWindowActive(form):
        pytest.skip("Window activation is not available on this platform")


def test_rerender_restores_focus_to_replacement(qapp, make_form, pet_schema):
    form = make_form(pet_schema)
    _show_active(form)

    name = control(form, "name")
    name.setFocus()
    qapp.processEvents()
    assert QApplication.focusWidget() is name

    name.setText("Ada")
    name.editingFinished.emit()

    replacement = control(form, "name")
    assert replacement is not name
    assert QApplication.focusWidget() is replacement


def test_stage_change_focuses_first_control(qapp, make_form, pet_schema):
    form = make_form(pet_schema)
    _show_active(form)
    fill_owner(form)

    form.controls.next_button.setFocus()
    qapp.processEvents()
    form.go_next()

    assert QApplication.focusWidget() is control(form, "hasPet")


def test_tab_wraps_inside_form(qapp, make_form, pet_schema):
    form = make_form(pet_schema)
    _show_active(form)

    form.controls.reset_button.setFocus()
    qapp.processEvents()

    assert form.focusNextPrevChild(True)
    assert QApplication.focusWidget() is control(form, "name")

    assert form.focusNextPrevChild(False)
    assert QApplication.focusWidget() is form.controls.reset_button


# ========== CONSTRUCTION ==========

def test_rejects_wrong_policy_type(qapp):
    with pytest.raises(TypeError):
        StageFormManager(FormManagerConfig(policies={"validation": None}))


def test_instance_ids_are_unique(qapp):
    first = StageFormManager()
    second = StageFormManager()
    try:
        assert first.instance_id != second.instance_id
        assert first.instance_id.startswith("stage-form-")
    finally:
        first.deleteLater()
        second.deleteLater()


def test_compact_layout(make_form, pet_schema):
    from pyqt_stageform.forms.layout_constants import COMPACT_LAYOUT
    form = make_form(pet_schema, layout_config=COMPACT_LAYOUT)

    assert form.indicator.steps[0].maximumWidth() == COMPACT_LAYOUT.step_button_size
    assert form.layout().spacing() == COMPACT_LAYOUT.main_layout_spacing

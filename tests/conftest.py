"""pytest configuration and fixtures for pyqt-stageform tests."""

import os

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest
from PyQt6.QtWidgets import QApplication

from pyqt_stageform.forms.stage_form_manager import FormManagerConfig, StageFormManager
from pyqt_stageform.protocols.form_config import StageFormConfig
from pyqt_stageform.protocols.form_policy import (
    DraftPolicy, FormPolicies, SubmissionPolicy, SubmissionResult,
)
from pyqt_stageform.services.validation_service import RequiredFieldValidator


PET_SCHEMA = {
    "id": "pets",
    "stages": [
        {
            "id": "owner",
            "label": "Owner",
            "fields": [
                {"type": "text", "name": "name", "label": "Name", "required": True},
                {
                    "type": "email", "name": "email", "label": "Email", "required": True,
                    "helperText": "We never share it",
                },
            ],
        },
        {
            "id": "pet",
            "label": "Pet",
            "fields": [
                {"type": "checkbox", "name": "hasPet", "label": "I have a pet"},
                {
                    "type": "text", "name": "petName", "label": "Pet name",
                    "showIf": {"field": "hasPet", "equals": True},
                },
                {"type": "radio", "name": "size", "label": "Size", "options": ["small", "large dog"]},
            ],
        },
        {"id": "review", "label": "Review", "type": "summary"},
    ],
}

CONTROLLER_SCHEMA = {
    "id": "contact",
    "fields": [
        {"type": "text", "name": "code", "label": "Code"},
        {"type": "text", "name": "secret", "label": "Secret", "showIf": {"field": "code", "equals": "open"}},
        {"type": "text", "name": "notes", "label": "Notes"},
    ],
}


class RecordingDrafts(DraftPolicy):
    """Draft policy that remembers every call."""

    def __init__(self, preset=None):
        self.preset = preset
        self.saved = []
        self.cleared = []

    def save_draft(self, snapshot):
        self.saved.append(snapshot)

    def load_draft(self, schema_id):
        if self.preset is not None and self.preset.schema_id == schema_id:
            return self.preset
        return None

    def clear_draft(self, schema_id):
        self.cleared.append(schema_id)


class RecordingSubmission(SubmissionPolicy):
    """Submission policy returning a preset result, or raising a preset error."""

    def __init__(self, result=True, error=None, delay_s=0.0):
        self.result = result
        self.error = error
        self.delay_s = delay_s
        self.payloads = []

    def submit(self, payload):
        if self.delay_s:
            import time
            time.sleep(self.delay_s)
        self.payloads.append(payload)
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture(scope="session")
def qapp():
    """Create QApplication instance for tests."""
    app = QApplication.instance() or QApplication([])
    yield app
    # Don't quit - may cause issues with other tests


@pytest.fixture
def form_config():
    return StageFormConfig(
        render_debounce_ms=40,
        announce_delay_ms=0,
        background_submission=False,
        confirm_reset=False,
    )


@pytest.fixture
def make_form(qapp, form_config):
    """Factory for StageFormManager instances wired to recording policies."""
    created = []

    def factory(schema=None, drafts=None, submission=None, validation=None, config=None, **kwargs):
        config = config or form_config
        policies = FormPolicies(
            validation=validation or RequiredFieldValidator(config),
            drafts=drafts or RecordingDrafts(),
            submission=submission or RecordingSubmission(),
        )
        form = StageFormManager(FormManagerConfig(config=config, policies=policies, instance_id="f", **kwargs))
        created.append(form)
        if schema is not None:
            form.load_schema(schema)
        return form

    yield factory

    for form in created:
        form.close()
        form.deleteLater()
    qapp.processEvents()


@pytest.fixture
def pet_schema():
    import copy
    return copy.deepcopy(PET_SCHEMA)


@pytest.fixture
def controller_schema():
    import copy
    return copy.deepcopy(CONTROLLER_SCHEMA)

"""
Widget adapters that wrap Qt widgets to implement the form control ABCs.

Normalizes Qt's inconsistent APIs:
- QLineEdit.text() vs QPlainTextEdit.toPlainText() vs QComboBox.currentData()
- QLineEdit.editingFinished vs QComboBox.activated vs QAbstractButton.toggled

All adapters implement a consistent interface via ABCs:
- get_value() / set_value() for all controls
- connect_commit_signal() for all controls
- connect_input_signal() for free-text controls

Commit signals only fire for user edits: the adapters listen to Qt signals
that are not emitted by programmatic setters (textEdited, activated,
clicked), or the engine writes values with signals blocked.
"""

import re
from abc import ABCMeta
from typing import Any, Callable, List, Optional, Sequence, Tuple

from PyQt6.QtCore import QObject, pyqtSignal
from PyQt6.QtWidgets import (
    QButtonGroup, QCheckBox, QComboBox, QLineEdit, QPlainTextEdit, QRadioButton,
    QVBoxLayout, QWidget,
)

from pyqt_stageform.schema.visibility import strict_equals
from .widget_protocols import (
    CommitSignalEmitter, InputSignalEmitter, PlaceholderCapable, ValueGettable,
    ValueSettable,
)

# PyQt-specific metaclass that combines Qt's metaclass with ABCMeta
_QtMetaclass = type(QObject)


class PyQtWidgetMeta(_QtMetaclass, ABCMeta):
    """Metaclass for PyQt widgets that need ABC support."""
    pass


def _matches_option(option_value: Any, value: Any) -> bool:
    return strict_equals(option_value, value)


class LineEditAdapter(QLineEdit, ValueGettable, ValueSettable, PlaceholderCapable,
                      CommitSignalEmitter, InputSignalEmitter, metaclass=PyQtWidgetMeta):
    """
    Adapter for QLineEdit, used for every single-line free-text type.

    - .text() → .get_value()
    - .editingFinished → commit (Enter, or focus out after a change)
    - .textEdited → input (user keystrokes only)
    """

    _widget_id = "line_edit"

    def get_value(self) -> Any:
        return self.text()

    def set_value(self, value: Any) -> None:
        self.setText("" if value is None else str(value))

    def set_placeholder(self, text: str) -> None:
        self.setPlaceholderText(text)

    def connect_commit_signal(self, callback: Callable[[Any], None]) -> None:
        self.editingFinished.connect(lambda: callback(self.get_value()))

    def connect_input_signal(self, callback: Callable[[Any], None]) -> None:
        self.textEdited.connect(lambda text: callback(text))


class TextAreaAdapter(QPlainTextEdit, ValueGettable, ValueSettable, PlaceholderCapable,
                      CommitSignalEmitter, InputSignalEmitter, metaclass=PyQtWidgetMeta):
    """
    Adapter for QPlainTextEdit.

    QPlainTextEdit has no editingFinished, so the adapter tracks whether the
    text changed since the last commit and emits ``committed`` on focus out.
    Tab moves focus instead of inserting a tab character.
    """

    _widget_id = "text_area"

    committed = pyqtSignal()

    def __init__(self, parent=None):
        super().__init__(parent)
        self._dirty = False
        self.setTabChangesFocus(True)
        self.textChanged.connect(self._mark_dirty)

    def _mark_dirty(self):
        self._dirty = True

    def set_rows(self, rows: int) -> None:
        """Size the editor to show the given number of text lines."""
        margins = self.contentsMargins()
        frame = 2 * self.frameWidth() + margins.top() + margins.bottom()
        line_height = self.fontMetrics().lineSpacing()
        self.setFixedHeight(line_height * max(rows, 1) + frame + 2 * int(self.document().documentMargin()))

    def get_value(self) -> Any:
        return self.toPlainText()

    def set_value(self, value: Any) -> None:
        self.setPlainText("" if value is None else str(value))
        self._dirty = False

    def set_placeholder(self, text: str) -> None:
        self.setPlaceholderText(text)

    def connect_commit_signal(self, callback: Callable[[Any], None]) -> None:
        self.committed.connect(lambda: callback(self.get_value()))

    def connect_input_signal(self, callback: Callable[[Any], None]) -> None:
        self.textChanged.connect(lambda: callback(self.get_value()))

    def focusOutEvent(self, event):
        super().focusOutEvent(event)
        if self._dirty:
            self._dirty = False
            self.committed.emit()


class ComboBoxAdapter(QComboBox, ValueGettable, ValueSettable, PlaceholderCapable,
                      CommitSignalEmitter, metaclass=PyQtWidgetMeta):
    """
    Adapter for QComboBox with a leading placeholder item.

    Stores actual option values in itemData. The placeholder item carries
    the empty string, which is what an unselected select reports.
    """

    _widget_id = "combo_box"

    def populate(self, options: Sequence[Tuple[Any, str]], placeholder: str) -> None:
        self.clear()
        self.addItem(placeholder, "")
        for value, label in options:
            self.addItem(label, value)

    def get_value(self) -> Any:
        if self.currentIndex() < 0:
            return ""
        return self.itemData(self.currentIndex())

    def set_value(self, value: Any) -> None:
        for i in range(1, self.count()):
            if _matches_option(self.itemData(i), value):
                self.setCurrentIndex(i)
                return
        # Value not among the options - show the placeholder
        self.setCurrentIndex(0 if self.count() else -1)

    def set_placeholder(self, text: str) -> None:
        if self.count():
            self.setItemText(0, text)

    def connect_commit_signal(self, callback: Callable[[Any], None]) -> None:
        # activated is only emitted for user interaction
        self.activated.connect(lambda index: callback(self.itemData(index)))


class CheckBoxAdapter(QCheckBox, ValueGettable, ValueSettable,
                      CommitSignalEmitter, metaclass=PyQtWidgetMeta):
    """Adapter for QCheckBox. Returns bool values, treats None as False."""

    _widget_id = "check_box"

    def get_value(self) -> Any:
        return self.isChecked()

    def set_value(self, value: Any) -> None:
        self.setChecked(bool(value) if value is not None else False)

    def connect_commit_signal(self, callback: Callable[[Any], None]) -> None:
        self.toggled.connect(lambda checked: callback(bool(checked)))


class RadioGroupAdapter(QWidget, ValueGettable, ValueSettable,
                        CommitSignalEmitter, metaclass=PyQtWidgetMeta):
    """
    Adapter for a group of QRadioButtons, one per option.

    The buttons are the focusable controls; this container only owns the
    exclusive QButtonGroup and maps buttons back to option values.
    """

    _widget_id = "radio_group"

    def __init__(self, parent=None):
        super().__init__(parent)
        self._layout = QVBoxLayout(self)
        self._layout.setContentsMargins(0, 0, 0, 0)
        self._group = QButtonGroup(self)
        self._group.setExclusive(True)
        self._options: List[Tuple[QRadioButton, Any]] = []

    def add_option(self, value: Any, label: str, object_name: str, group_name: str) -> QRadioButton:
        button = QRadioButton(label, self)
        button.setObjectName(object_name)
        button.setProperty("name", group_name)
        button.setProperty("value", value)
        self._group.addButton(button, len(self._options))
        self._layout.addWidget(button)
        self._options.append((button, value))
        return button

    @property
    def buttons(self) -> List[QRadioButton]:
        return [button for button, _ in self._options]

    def button_for(self, value: Any) -> Optional[QRadioButton]:
        for button, option_value in self._options:
            if _matches_option(option_value, value):
                return button
        return None

    def get_value(self) -> Any:
        for button, value in self._options:
            if button.isChecked():
                return value
        return ""

    def set_value(self, value: Any) -> None:
        button = self.button_for(value)
        if button is not None:
            button.setChecked(True)
            return
        # Exclusive groups refuse to uncheck the last button
        self._group.setExclusive(False)
        for other, _ in self._options:
            other.setChecked(False)
        self._group.setExclusive(True)

    def connect_commit_signal(self, callback: Callable[[Any], None]) -> None:
        # clicked is not emitted for programmatic setChecked()
        for button, value in self._options:
            button.clicked.connect(lambda checked=False, v=value: callback(v))


def radio_option_suffix(value: Any) -> str:
    """Whitespace-free fragment of an option value for radio object names."""
    return re.sub(r"\s+", "-", str(value))

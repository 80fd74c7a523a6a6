# label_designer/ui/dialogs/__init__.py
"""
Dialog builders and standalone dialog classes.

Re-exports only; implementations live in sibling modules.
This module must NOT import main_window to avoid circular imports.
"""
from .print_preview import PrintPreviewDialog
from .new_template import NewTemplateDialog, show_new_template_dialog
from .print_job import PrintJobDialog, show_print_job_dialog

__all__ = [
    "PrintPreviewDialog",
    "NewTemplateDialog",
    "show_new_template_dialog",
    "PrintJobDialog",
    "show_print_job_dialog",
]

"""
File helpers shared by the exporters: template lookup, export ids and paths
"""

import os
import secrets
from dataclasses import dataclass, field
from typing import Optional

from services.errors import TemplateError

EXPORT_ID_BYTES = 8

@dataclass
class ExportResult:
    export_id: str
    filename: str
    path: str
    kind: str
    truncated: bool = False
    details: Optional[dict] = field(default=None)

def new_export_id():
    """Short random id used in filenames and download links"""
    return secrets.token_urlsafe(EXPORT_ID_BYTES)

def resolve_template_path(filename, template_folder, project_root=None):
    """Look for a template in the template folder, then the project root"""
    candidates = [os.path.join(template_folder, filename)]
    if project_root:
        candidates.append(os.path.join(project_root, 'templates', filename))
        candidates.append(os.path.join(project_root, filename))
    for candidate in candidates:
        if os.path.isfile(candidate):
            return candidate
    raise TemplateError(f"تعذر العثور على القالب {filename}")

def export_path(export_folder, filename):
    os.makedirs(export_folder, exist_ok=True)
    return os.path.join(export_folder, filename)

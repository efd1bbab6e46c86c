import re

import bleach
import markdown

# Content types accepted for upload and the file type each one is stored as.
MIME_FILE_TYPES = {
    'application/pdf': 'pdf',
    'image/jpeg': 'image',
    'image/jpg': 'image',
    'image/png': 'image',
    'application/msword': 'doc',
    'application/vnd.openxmlformats-officedocument.wordprocessingml.document': 'doc',
    'application/vnd.ms-powerpoint': 'ppt',
    'application/vnd.openxmlformats-officedocument.presentationml.presentation': 'ppt',
}


def file_type_for(mimetype):
    """Maps an upload's content type to pdf/image/doc/ppt, or None if not allowed."""
    if not mimetype:
        return None
    return MIME_FILE_TYPES.get(mimetype.split(';', 1)[0].strip().lower())


def sanitize_html(text):
    """Renders markdown text to HTML that is safe to show in the browser."""
    return bleach.clean(
        markdown.markdown(text),
        tags=list(bleach.sanitizer.ALLOWED_TAGS) + ['p', 'pre', 'span'],
        attributes=bleach.sanitizer.ALLOWED_ATTRIBUTES
    )


def clean_text(text):
    """Strips markup from user input; empty input becomes None."""
    if text is None:
        return None
    text = bleach.clean(text, tags=[], strip=True).strip()
    return text or None


def slugify(name):
    slug = re.sub(r'[^a-z0-9]+', '-', name.lower()).strip('-')
    return slug


def format_size(size):
    if not size:
        return 'Unknown'
    if size < 1024:
        return f'{size} B'
    if size < 1024 * 1024:
        return f'{size / 1024:.2f} KB'
    return f'{size / (1024 * 1024):.2f} MB'

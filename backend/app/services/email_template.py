"""
HTML templates for the forwarded notification email and the error page.

Two fixed layouts:
  - render_notification: responsive email body: header with title and
                         timestamp, the primary text, one block per
                         additional field, and a fixed footer.
  - render_error_page: the page returned with HTTP 500 when a
                       submission could not be forwarded.

Submitted values are trusted input and are interpolated without HTML
escaping unless ``escape=True`` is passed (HTML_ESCAPE_FIELDS).

Public API:
  render_notification(primary_text, additional_fields, timestamp, *, escape=False) -> str
  render_error_page(error_message, timestamp) -> str
  split_field_line(line) -> tuple[str, str]
"""

import html

NOTIFICATION_TITLE = "Notification"
FOOTER_TEXT = "This is an automated notification."

# ---------------------------------------------------------------------------
# Notification layout
# ---------------------------------------------------------------------------

_NOTIFICATION_STYLE = """
        body {
            margin: 0;
            padding: 0;
            font-family: Arial, sans-serif;
            line-height: 1.6;
            color: #333333;
            -webkit-text-size-adjust: 100%;
            -ms-text-size-adjust: 100%;
        }
        .email-container {
            max-width: 600px;
            margin: 0 auto;
            padding: 20px;
            background-color: #ffffff;
        }
        .header {
            background-color: #f8f9fa;
            padding: 20px;
            border-radius: 5px 5px 0 0;
            border-bottom: 3px solid #007bff;
        }
        .content {
            padding: 20px;
            background-color: #ffffff;
        }
        .footer {
            padding: 20px;
            background-color: #f8f9fa;
            border-radius: 0 0 5px 5px;
            font-size: 12px;
            color: #666666;
        }
        .timestamp {
            color: #666666;
            font-size: 14px;
            margin-top: 10px;
        }
        .field {
            margin-bottom: 15px;
            padding: 10px;
            background-color: #f8f9fa;
            border-radius: 4px;
        }
        .field-label {
            font-weight: bold;
            color: #007bff;
        }

        /* Dark mode for clients that honour prefers-color-scheme */
        @media (prefers-color-scheme: dark) {
            .email-container {
                background-color: #333333 !important;
                color: #ffffff !important;
            }
            .header, .footer {
                background-color: #222222 !important;
            }
            .field {
                background-color: #444444 !important;
            }
        }
"""

_NOTIFICATION_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>New Notification</title>
    <style>{style}</style>
</head>
<body>
    <div class="email-container">
        <div class="header">
            <h2 style="margin: 0; color: #007bff;">{title}</h2>
            <div class="timestamp">
                {timestamp}
            </div>
        </div>
        <div class="content">
{content}
        </div>
        <div class="footer">
            <p>{footer}</p>
        </div>
    </div>
</body>
</html>
"""

_PRIMARY_TEXT_BLOCK = '            <div class="field">{text}</div>\n'

_ADDITIONAL_HEADING = '            <h3 style="color: #333333;">Additional Information</h3>\n'

_FIELD_BLOCK = """            <div class="field">
                <span class="field-label">{label}:</span>
                <span>{value}</span>
            </div>
"""

# ---------------------------------------------------------------------------
# Error layout
# ---------------------------------------------------------------------------

_ERROR_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Processing Error</title>
    <style>
        body {{
            margin: 0;
            padding: 0;
            font-family: Arial, sans-serif;
            background-color: #f0f2f5;
            display: flex;
            justify-content: center;
            align-items: center;
            min-height: 100vh;
        }}
        .error-container {{
            background-color: white;
            padding: 2rem;
            border-radius: 8px;
            box-shadow: 0 2px 10px rgba(0, 0, 0, 0.1);
            max-width: 500px;
            width: 90%;
            text-align: center;
        }}
        .error-icon {{
            width: 70px;
            height: 70px;
            background-color: #ff4444;
            border-radius: 50%;
            display: flex;
            align-items: center;
            justify-content: center;
            margin: 0 auto 1.5rem;
        }}
        .error-icon::after {{
            content: "!";
            color: white;
            font-size: 40px;
            font-weight: bold;
        }}
        .error-title {{
            color: #ff4444;
            font-size: 24px;
            margin-bottom: 1rem;
        }}
        .error-message {{
            color: #666;
            margin-bottom: 1.5rem;
            line-height: 1.6;
        }}
        .timestamp {{
            color: #888;
            font-size: 14px;
            margin-top: 1rem;
            padding-top: 1rem;
            border-top: 1px solid #eee;
        }}
        .retry-button {{
            display: inline-block;
            padding: 10px 20px;
            background-color: #007bff;
            color: white;
            text-decoration: none;
            border-radius: 5px;
            margin-top: 1rem;
            transition: background-color 0.3s;
        }}
        .retry-button:hover {{
            background-color: #0056b3;
        }}
    </style>
</head>
<body>
    <div class="error-container">
        <div class="error-icon"></div>
        <h1 class="error-title">Processing Error</h1>
        <p class="error-message">
            We encountered an error while processing your request. Please try again.
        </p>
        <a href="/" class="retry-button">Try Again</a>
        <div class="timestamp">
            Error occurred at: {timestamp}
        </div>
    </div>
</body>
</html>
"""


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def split_field_line(line: str) -> tuple[str, str]:
    """
    Split a ``"<name>: <value>"`` line at its first colon.

    Examples:
        "user: alice"       -> ("user", " alice")
        "note: time: 10:30" -> ("note", " time: 10:30")
        "no colon here"     -> ("no colon here", "")
    """
    label, _, value = line.partition(":")
    return label, value


def _render_content(primary_text: str, additional_fields: str, escape: bool) -> str:
    def clean(value: str) -> str:
        return html.escape(value) if escape else value

    parts: list[str] = []
    if primary_text:
        parts.append(_PRIMARY_TEXT_BLOCK.format(text=clean(primary_text)))

    if additional_fields:
        parts.append(_ADDITIONAL_HEADING)
        for line in additional_fields.split("\n"):
            if not line.strip():
                continue
            label, value = split_field_line(line)
            parts.append(_FIELD_BLOCK.format(label=clean(label), value=clean(value)))

    return "".join(parts)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def render_notification(
    primary_text: str,
    additional_fields: str,
    timestamp: str,
    *,
    escape: bool = False,
) -> str:
    """
    Render the notification email for one submission.

    Args:
        primary_text:      The submission's ``text`` field; its block is
                           omitted when empty.
        additional_fields: Newline-separated ``"<name>: <value>"`` lines; the
                           whole "Additional Information" section is omitted
                           when empty, and blank lines are skipped.
        timestamp:         Pre-formatted time shown in the header.
        escape:            HTML-escape submitted values before interpolation.

    Returns:
        A complete HTML document.
    """
    return _NOTIFICATION_TEMPLATE.format(
        style=_NOTIFICATION_STYLE,
        title=NOTIFICATION_TITLE,
        timestamp=timestamp,
        content=_render_content(primary_text, additional_fields, escape),
        footer=FOOTER_TEXT,
    )


def render_error_page(error_message: str, timestamp: str) -> str:
    """
    Render the generic error page.

    error_message is not rendered into the page; only the timestamp is.
    """
    return _ERROR_TEMPLATE.format(timestamp=timestamp)

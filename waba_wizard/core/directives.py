"""Directive rendering.

Turns wizard directives into responses for the calling browser: redirects
stay redirects, dialogs and errors become small HTML pages.
"""

from fastapi import status
from fastapi.responses import HTMLResponse, RedirectResponse, Response
from jinja2 import BaseLoader, Environment

from waba_wizard.models.wizard import (
    ButtonAction,
    ConfirmDirective,
    Directive,
    ErrorDirective,
    RedirectDirective,
    SelectDirective,
)

_jinja_env = Environment(loader=BaseLoader(), autoescape=True)

_LAYOUT = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>{{ title }}</title>
</head>
<body>
<main>
<h1>{{ title }}</h1>
<p>{{ description }}</p>
{% block content %}{% endblock %}
</main>
</body>
</html>
"""

_CONFIRM_TEMPLATE = _jinja_env.from_string(
    _LAYOUT.replace(
        "{% block content %}{% endblock %}",
        """<div class="actions">
{% for button in buttons %}
{% if button.action == navigate %}
<a class="button {{ button.kind }}" href="{{ button.payload }}">{{ button.display }}</a>
{% else %}
<button class="button {{ button.kind }}" type="button" onclick="window.close()">{{ button.display }}</button>
{% endif %}
{% endfor %}
</div>""",
    )
)

_SELECT_TEMPLATE = _jinja_env.from_string(
    _LAYOUT.replace(
        "{% block content %}{% endblock %}",
        """<form method="get" action="{{ target_url }}">
{% for option in options %}
<label>
<input type="radio" name="{{ key }}" value="{{ option.id }}" required{% if loop.first %} checked{% endif %}>
{{ option.display }}
</label><br>
{% else %}
<p class="empty">No options available.</p>
{% endfor %}
{% for name, value in continuation_params.items() %}
<input type="hidden" name="{{ name }}" value="{{ value }}">
{% endfor %}
{% if options %}<button type="submit">Continue</button>{% endif %}
</form>""",
    )
)

_ERROR_TEMPLATE = _jinja_env.from_string(_LAYOUT)


class DirectiveRenderer:
    """Render directives as HTTP responses."""

    def render(self, directive: Directive) -> Response:
        if isinstance(directive, RedirectDirective):
            return RedirectResponse(url=directive.url, status_code=status.HTTP_302_FOUND)

        if isinstance(directive, ConfirmDirective):
            return HTMLResponse(
                _CONFIRM_TEMPLATE.render(
                    title=directive.title,
                    description=directive.description,
                    buttons=directive.options,
                    navigate=ButtonAction.NAVIGATE,
                )
            )

        if isinstance(directive, SelectDirective):
            return HTMLResponse(
                _SELECT_TEMPLATE.render(
                    title=directive.title,
                    description=directive.description,
                    key=directive.key,
                    options=directive.options,
                    target_url=directive.target_url,
                    continuation_params=directive.continuation_params,
                )
            )

        if isinstance(directive, ErrorDirective):
            return HTMLResponse(
                _ERROR_TEMPLATE.render(
                    title="Something went wrong",
                    description=directive.message,
                ),
                status_code=directive.status_code,
            )

        raise TypeError(f"Unsupported directive: {type(directive).__name__}")

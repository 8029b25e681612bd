"""Static HTML forms served for the profile update endpoints."""

_FORM_PAGE = """<!DOCTYPE html>
<html>
  <head><title>{title}</title></head>
  <body>
    <h1>{title}</h1>
    <form action="{action}" method="post">
{fields}
      <input type="submit" value="Submit">
    </form>
  </body>
</html>
"""

_FIELD = """      <label>{label}: <input type="{type}" name="{name}" required></label><br>"""


def _render(title: str, action: str, fields: list) -> str:
    rendered = "\n".join(
        _FIELD.format(label=label, type=input_type, name=name)
        for name, label, input_type in fields
    )
    return _FORM_PAGE.format(title=title, action=action, fields=rendered)


UPDATE_PASSWORD_FORM = _render(
    "Update password",
    "/updateUserPassword",
    [("username", "Username", "text"), ("password", "New password hash", "password")],
)

UPDATE_DOB_FORM = _render(
    "Update date of birth",
    "/updatedob",
    [("username", "Username", "text"), ("dob", "Date of birth", "date")],
)

UPDATE_CITY_STATE_FORM = _render(
    "Update city and state",
    "/updateCityState",
    [("username", "Username", "text"), ("city", "City", "text"), ("state", "State", "text")],
)

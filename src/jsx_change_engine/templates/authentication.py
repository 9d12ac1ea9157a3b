"""Snippets for the authentication scaffold.

The scaffold is applied by composing primitive edits (state hooks, handler
statements, an early-return guard, and a JSX insertion), so these helpers only
produce text; placement is done by the handler.
"""

INPUT_CLASSES = (
    "w-full px-4 py-2 border border-gray-300 rounded-lg "
    "focus:ring-2 focus:ring-blue-500 focus:border-transparent"
)
LOGOUT_CLASSES = "mb-4 bg-red-500 text-white px-4 py-2 rounded hover:bg-red-600 transition-colors"

EMAIL_STATE = ("email", "setEmail", "''")
PASSWORD_STATE = ("password", "setPassword", "''")
LOGGED_IN_STATE = ("isLoggedIn", "setIsLoggedIn", "false")


def state_variables(include_email: bool) -> list[tuple[str, str, str]]:
    """(name, setter, initial value) for every state hook the scaffold adds."""
    states = [LOGGED_IN_STATE]
    if include_email:
        states.append(EMAIL_STATE)
    states.append(PASSWORD_STATE)
    return states


def login_handler(include_email: bool, indent: str, unit: str) -> str:
    """``const handleLogin = (e) => { ... };`` rendered at ``indent``."""
    condition = "email && password" if include_email else "password"
    inner = indent + unit
    return "\n".join(
        [
            "const handleLogin = (e) => {",
            f"{inner}e.preventDefault();",
            f"{inner}if ({condition}) {{",
            f"{inner}{unit}setIsLoggedIn(true);",
            f"{inner}}}",
            f"{indent}}};",
        ]
    )


def logout_handler(include_email: bool, indent: str, unit: str) -> str:
    """``const handleLogout = () => { ... };`` rendered at ``indent``."""
    inner = indent + unit
    lines = ["const handleLogout = () => {", f"{inner}setIsLoggedIn(false);"]
    if include_email:
        lines.append(f"{inner}setEmail('');")
    lines += [f"{inner}setPassword('');", f"{indent}}};"]
    return "\n".join(lines)


def _inputs(include_email: bool, styled: bool) -> list[str]:
    extra = f' className="{INPUT_CLASSES}"' if styled else ""
    inputs = []
    if include_email:
        inputs.append(
            '<input type="email" value={email} onChange={(e) => setEmail(e.target.value)} '
            f'placeholder="Email"{extra} required />'
        )
    inputs.append(
        '<input type="password" value={password} onChange={(e) => setPassword(e.target.value)} '
        f'placeholder="Password"{extra} required />'
    )
    return inputs


def login_form(include_email: bool, styled: bool) -> str:
    """Login form JSX, indented with two spaces per level from column zero."""
    if not styled:
        lines = [
            "<div>",
            "  <h2>Login</h2>",
            "  <form onSubmit={handleLogin}>",
            *("    " + line for line in _inputs(include_email, False)),
            '    <button type="submit">Login</button>',
            "  </form>",
            "</div>",
        ]
        return "\n".join(lines)
    lines = [
        '<div className="min-h-screen flex items-center justify-center bg-gray-100">',
        '  <div className="bg-white p-8 rounded-lg shadow-md w-full max-w-md">',
        '    <h2 className="text-2xl font-bold mb-6 text-center">Login</h2>',
        '    <form onSubmit={handleLogin} className="space-y-4">',
        *("      " + line for line in _inputs(include_email, True)),
        '      <button type="submit" className="w-full bg-blue-500 text-white py-2 rounded-lg '
        'hover:bg-blue-600 transition-colors">Login</button>',
        "    </form>",
        "  </div>",
        "</div>",
    ]
    return "\n".join(lines)


def login_guard(form: str, indent: str, unit: str) -> str:
    """``if (!isLoggedIn) { return (form); }`` rendered at ``indent``."""
    inner = indent + unit
    form_lines = [inner + unit + line for line in form.splitlines()]
    return "\n".join(
        [
            "if (!isLoggedIn) {",
            f"{inner}return (",
            *form_lines,
            f"{inner});",
            f"{indent}}}",
        ]
    )


def logout_button(styled: bool) -> str:
    """Logout button JSX."""
    if styled:
        return f'<button onClick={{handleLogout}} className="{LOGOUT_CLASSES}">Logout</button>'
    return "<button onClick={handleLogout}>Logout</button>"

"""
Protocolo extmodule do Yate - codificação e parsing de linhas.

Formato (uma linha por comando, terminada em \\n):
    %%>message:<id>:<time>:<name>:<retvalue>[:<key>=<value>...]
    %%<message:<id>:<processed>:<name>:<retvalue>[:<key>=<value>...]
    %%>install:<priority>:<name>
    %%<install:<priority>:<name>:<success>
    %%>setlocal:<name>:<value>
    %%<setlocal:<name>:<value>:<success>

Referências:
- https://docs.yate.ro/wiki/External_module_command_flow
- https://docs.yate.ro/wiki/External_Module
"""

import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

# Keywords (módulo -> Yate usa %%>, resposta usa %%<)
MESSAGE_REQUEST = "%%>message"
MESSAGE_ANSWER = "%%<message"
INSTALL_REQUEST = "%%>install"
INSTALL_ANSWER = "%%<install"
UNINSTALL_REQUEST = "%%>uninstall"
UNINSTALL_ANSWER = "%%<uninstall"
WATCH_REQUEST = "%%>watch"
WATCH_ANSWER = "%%<watch"
UNWATCH_REQUEST = "%%>unwatch"
UNWATCH_ANSWER = "%%<unwatch"
SETLOCAL_REQUEST = "%%>setlocal"
SETLOCAL_ANSWER = "%%<setlocal"
OUTPUT_REQUEST = "%%>output"
CONNECT_REQUEST = "%%>connect"
ERROR_PREFIX = "Error in:"


class ProtocolError(ValueError):
    """Linha extmodule malformada."""
    pass


def escape(value: Any, extra: str = "") -> str:
    """
    Escapa um valor para o protocolo extmodule.

    '%' vira '%%'; ':' e caracteres de controle viram '%' + chr(code + 64).
    `extra` permite escapar caracteres adicionais ('=' em nomes de parâmetros).
    """
    out = []
    for ch in str(value):
        if ch == "%":
            out.append("%%")
        elif ord(ch) < 32 or ch == ":" or ch in extra:
            out.append("%" + chr(ord(ch) + 64))
        else:
            out.append(ch)
    return "".join(out)


def unescape(value: str) -> str:
    """Reverte escape()."""
    out = []
    i = 0
    while i < len(value):
        ch = value[i]
        if ch != "%":
            out.append(ch)
            i += 1
            continue
        if i + 1 >= len(value):
            raise ProtocolError(f"Dangling escape in {value!r}")
        nxt = value[i + 1]
        if nxt == "%":
            out.append("%")
        elif ord(nxt) >= 64:
            out.append(chr(ord(nxt) - 64))
        else:
            raise ProtocolError(f"Invalid escape %{nxt} in {value!r}")
        i += 2
    return "".join(out)


def to_bool(value: str) -> bool:
    return value.strip().lower() == "true"


@dataclass
class YateMessage:
    """
    Mensagem do Yate.

    `broadcast` existe apenas por compatibilidade com a API javascript.yate.
    """
    name: str
    broadcast: bool = False
    params: Dict[str, Any] = field(default_factory=dict)
    retvalue: str = ""
    time: int = field(default_factory=lambda: int(time.time()))
    id: str = ""
    handled: Optional[bool] = None

    def __post_init__(self):
        if self.params is None:
            self.params = {}
        else:
            self.params = dict(self.params)

    # Acesso estilo dict aos parâmetros
    def __getitem__(self, key: str) -> Any:
        return self.params[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self.params[key] = value

    def __delitem__(self, key: str) -> None:
        del self.params[key]

    def __contains__(self, key: object) -> bool:
        return key in self.params

    # API legada (javascript.yate)
    def getParam(self, name: str, default: Any = None) -> Any:
        return self.params.get(name, default)

    def setParam(self, name: str, value: Any) -> None:
        if value is None:
            self.params.pop(name, None)
        else:
            self.params[name] = value

    def retValue(self, value: Optional[str] = None) -> Optional[str]:
        if value is None:
            return self.retvalue
        self.retvalue = str(value)
        return None

    def msgTime(self) -> int:
        return self.time


def format_params(params: Dict[str, Any]) -> List[str]:
    return [f"{escape(key, '=')}={escape('' if value is None else value)}" for key, value in params.items()]


def parse_params(items: List[str]) -> Dict[str, str]:
    params: Dict[str, str] = {}
    for item in items:
        key, _, value = item.partition("=")
        params[unescape(key)] = unescape(value)
    return params


def format_message(message: YateMessage) -> str:
    """Serializa uma mensagem a ser despachada pelo Yate (%%>message)."""
    parts = [
        MESSAGE_REQUEST,
        escape(message.id),
        str(message.time),
        escape(message.name),
        escape(message.retvalue or ""),
    ]
    parts.extend(format_params(message.params))
    return ":".join(parts)


def format_answer(message: YateMessage, processed: bool) -> str:
    """Serializa a resposta para uma mensagem recebida do Yate (%%<message)."""
    parts = [
        MESSAGE_ANSWER,
        escape(message.id),
        "true" if processed else "false",
        escape(message.name),
        escape(message.retvalue or ""),
    ]
    parts.extend(format_params(message.params))
    return ":".join(parts)


def format_install(name: str, priority: int = 100) -> str:
    return f"{INSTALL_REQUEST}:{int(priority)}:{escape(name)}"


def format_uninstall(name: str) -> str:
    return f"{UNINSTALL_REQUEST}:{escape(name)}"


def format_watch(name: str) -> str:
    return f"{WATCH_REQUEST}:{escape(name)}"


def format_unwatch(name: str) -> str:
    return f"{UNWATCH_REQUEST}:{escape(name)}"


def format_setlocal(name: str, value: Any = "") -> str:
    return f"{SETLOCAL_REQUEST}:{escape(name)}:{escape('' if value is None else value)}"


def format_output(text: str) -> List[str]:
    """
    Linhas de output. O texto não é escapado pelo Yate, então cada quebra de
    linha gera um comando separado.
    """
    return [f"{OUTPUT_REQUEST}:{line}" for line in (text.splitlines() or [""])]


def format_connect(role: str, channel_id: Optional[str] = None, media_type: Optional[str] = None) -> str:
    parts = [CONNECT_REQUEST, escape(role)]
    if channel_id:
        parts.append(escape(channel_id))
        if media_type:
            parts.append(escape(media_type))
    return ":".join(parts)


def split_line(line: str) -> Tuple[str, List[str]]:
    """Separa keyword e campos crus de uma linha recebida."""
    if line.startswith(ERROR_PREFIX):
        return ERROR_PREFIX, [line[len(ERROR_PREFIX):].strip()]
    keyword, _, rest = line.partition(":")
    return keyword, rest.split(":") if rest else []


def parse_incoming_message(fields: List[str]) -> YateMessage:
    """Campos de %%>message:<id>:<time>:<name>:<retvalue>[:params]."""
    if len(fields) < 3:
        raise ProtocolError(f"Incomplete message request: {fields!r}")
    try:
        msg_time = int(fields[1])
    except ValueError:
        msg_time = int(time.time())
    return YateMessage(
        name=unescape(fields[2]),
        params=parse_params(fields[4:]),
        retvalue=unescape(fields[3]) if len(fields) > 3 else "",
        time=msg_time,
        id=unescape(fields[0]),
    )


def parse_answer(fields: List[str]) -> Tuple[str, bool, str, str, Dict[str, str]]:
    """
    Campos de %%<message:<id>:<processed>:<name>:<retvalue>[:params].

    Returns:
        (id, processed, name, retvalue, params)
    """
    if len(fields) < 2:
        raise ProtocolError(f"Incomplete message answer: {fields!r}")
    name = unescape(fields[2]) if len(fields) > 2 else ""
    retvalue = unescape(fields[3]) if len(fields) > 3 else ""
    return unescape(fields[0]), to_bool(fields[1]), name, retvalue, parse_params(fields[4:])

import re

from rich.pretty import pprint

from argosy import *

__prog__ = "demo"

clap = Clap(
    {
        "verbose": {"alias": "v", "type": "count"},
        "log-level": {"alias": "q", "type": "string", "default": "info"},
        "tags": {"type": "string array"},
        "color": {"type": "boolean", "default": True},
    },
    {
        "build": {
            "alias": "b",
            "args": "<target> [level mode]",
            "level": re.compile(r"^(debug|release)$"),
            "options": {"jobs": {"alias": "j", "type": "number", "default": 1}},
            "exec": print,
        },
        "serve": {
            "args": "[number port]",
            "default": True,
            "exec": print,
        },
    },
    shell=True,
    fancy=True,
    colorful=True,
)


if __name__ == '__main__':
    result = clap.parse()
    pprint(result)
    pprint(clap.invocations(result))

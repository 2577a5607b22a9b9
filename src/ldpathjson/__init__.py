"""ldpathjson: LDPath-to-JSON projection of repository resources.

Main modules:
- processors: pipeline processors (LdpathProcessor and helpers)
- resolver: describedby-aware address resolution
- proxy_map: external identifier → internal fetch address map
- cache: retrieved graph cache
- executor: LDPath evaluation against repository resources
- ldpath: LDPath parser and evaluator
- sparql: SPARQL bind-and-format processor
"""

from .cache import GraphCache
from .executor import QueryExecutor
from .ldpath import evaluate_program, parse_program
from .processors import LdpathProcessor, Message
from .projector import project
from .proxy_map import ProxyRewriteMap
from .resolver import AddressResolver, Resolution

# Import version information
from .version import VERSION

__all__ = [
    "VERSION",
    "AddressResolver",
    "GraphCache",
    "LdpathProcessor",
    "Message",
    "ProxyRewriteMap",
    "QueryExecutor",
    "Resolution",
    "evaluate_program",
    "parse_program",
    "project",
]

# model/__init__.py

"""
Domain objects for protocol models and replayed state: the term algebra,
the typed signature, role templates, the relation store (bulletin board),
channels and the event log. These types carry no scheduling logic.
"""

from .terms import Term, Name, Const, Func, Var, TRUE, FALSE
from .signature import (
    Signature,
    Constructor,
    Destructor,
    RewriteRule,
    TableDecl,
    EventDecl,
    ChannelDecl,
    FreeName,
)
from .patterns import Bind, Exact, Wildcard, PFunc
from .process import New, Let, Guard, Insert, Get, Out, In, Emit, RoleTemplate
from .protocol import ProtocolModel
from .relations import RelationStore
from .channels import Channel, ChannelSet
from .event import EventOccurrence, EventLog
from .exceptions import ModelError, UnboundVariableError

__all__ = [
    "Term",
    "Name",
    "Const",
    "Func",
    "Var",
    "TRUE",
    "FALSE",
    "Signature",
    "Constructor",
    "Destructor",
    "RewriteRule",
    "TableDecl",
    "EventDecl",
    "ChannelDecl",
    "FreeName",
    "Bind",
    "Exact",
    "Wildcard",
    "PFunc",
    "New",
    "Let",
    "Guard",
    "Insert",
    "Get",
    "Out",
    "In",
    "Emit",
    "RoleTemplate",
    "ProtocolModel",
    "RelationStore",
    "Channel",
    "ChannelSet",
    "EventOccurrence",
    "EventLog",
    "ModelError",
    "UnboundVariableError",
]

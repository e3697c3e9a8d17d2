"""Kubeconfig context switching."""

from podmon.contexts.handle import ActiveClient, ClientHandle
from podmon.contexts.switcher import ContextSwitcher, SwitchState

__all__ = ["ActiveClient", "ClientHandle", "ContextSwitcher", "SwitchState"]

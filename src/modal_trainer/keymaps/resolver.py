"""Per-mode key tries that turn a run of key tokens into a command binding."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Literal, Optional, Sequence

from modal_trainer.runtime.telemetry import span

from .models import ActionRef, Binding
from .registry import KeymapRegistry


@dataclass(slots=True)
class TrieNode:
    binding_id: Optional[str] = None
    children: Dict[str, "TrieNode"] = field(default_factory=dict)

    def next_tokens(self) -> tuple[str, ...]:
        return tuple(sorted(self.children))


@dataclass(slots=True)
class KeymapTrie:
    """Key trie for one mode, stamped with the registry revision it reflects."""

    mode: str
    revision: int
    root: TrieNode = field(default_factory=TrieNode)

    @classmethod
    def build(cls, registry: KeymapRegistry, mode: str) -> "KeymapTrie":
        trie = cls(mode=mode, revision=registry.revision())
        for binding in registry.iter_bindings(mode):
            node = trie.root
            for token in binding.sequence.tokens:
                node = node.children.setdefault(token, TrieNode())
            node.binding_id = binding.id
        return trie

    def walk(self, tokens: Sequence[str]) -> tuple[Optional[TrieNode], int]:
        """Follow ``tokens``; returns the reached node (None on a dead end) and the depth."""

        node = self.root
        for depth, token in enumerate(tokens):
            child = node.children.get(token)
            if child is None:
                return None, depth
            node = child
        return node, len(tokens)


@dataclass(frozen=True, slots=True)
class ResolutionMatch:
    binding: Binding
    action: ActionRef


@dataclass(frozen=True, slots=True)
class ResolutionResult:
    """Outcome returned from the resolver.

    ``match`` means the tokens name exactly one command (argument bindings
    still need their target key); ``pending`` means they are a strict prefix
    of longer sequences; ``miss`` means nothing in the mode starts this way.
    """

    status: Literal["match", "pending", "miss"]
    match: Optional[ResolutionMatch] = None
    consumed: int = 0
    next_expected: tuple[str, ...] = ()


class KeymapResolver:
    """Resolves key tokens against the registry, rebuilding a mode's trie on change."""

    def __init__(
        self, registry: KeymapRegistry, *, logger_name: str | None = None
    ) -> None:
        self._registry = registry
        self._logger_name = logger_name
        self._tries: Dict[str, KeymapTrie] = {}

    @property
    def registry(self) -> KeymapRegistry:
        return self._registry

    def resolve(self, mode: str, tokens: Sequence[str]) -> ResolutionResult:
        tokens = tuple(tokens)
        with span(
            "keymaps::resolve",
            logger_name=self._logger_name,
            component="keymaps",
            metadata={"mode": mode, "length": len(tokens)},
        ) as handle:
            node, consumed = self._trie(mode).walk(tokens)
            if node is not None and node.binding_id is not None:
                binding = self._registry.get_binding(node.binding_id)
                handle.add_metadata("status", "match")
                handle.add_metadata("binding_id", binding.id)
                return ResolutionResult(
                    status="match",
                    match=ResolutionMatch(
                        binding=binding,
                        action=self._registry.get_action(binding.action_id),
                    ),
                    consumed=consumed,
                )
            if node is not None and node.children:
                handle.add_metadata("status", "pending")
                return ResolutionResult(
                    status="pending", consumed=consumed, next_expected=node.next_tokens()
                )
            handle.add_metadata("status", "miss")
            return ResolutionResult(status="miss", consumed=consumed)

    def reset(self, mode: Optional[str] = None) -> None:
        if mode is None:
            self._tries.clear()
        else:
            self._tries.pop(mode, None)

    def _trie(self, mode: str) -> KeymapTrie:
        trie = self._tries.get(mode)
        if trie is None or trie.revision != self._registry.revision():
            trie = self._tries[mode] = KeymapTrie.build(self._registry, mode)
        return trie


__all__ = [
    "KeymapResolver",
    "ResolutionResult",
    "ResolutionMatch",
]

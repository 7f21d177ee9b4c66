"""The streaming builder that turns parse events into an entity graph.

The builder is a push-down state machine. It keeps a stack of the entities
that are currently open, and hands each completed child to its parent:

.. code-block:: text

    <channel>                      push Channel (the root)
      <title>Radio</title>         channel.set_value("Radio", "title")
      <item>                       push channel.make_child_entity("item")
        <title>Episode</title>     item.set_value("Episode", "title")
      </item>                      pop, channel.set_child_entity(item, "item")
    </channel>

Elements that don't produce a child entity are not pushed on the stack.
Their text and CDATA is handed to the current entity when the element closes.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from enum import Enum

from xmlmapper import conf
from xmlmapper.exceptions import ExternalParsingError
from xmlmapper.parsers.xml import Attributes, EventTarget, is_whitespace
from xmlmapper.streaming.entity import Entity

logger = logging.getLogger(__name__)

__all__ = (
    "BuilderState",
    "StackBuilder",
)


class BuilderState(Enum):
    """The states of the :class:`StackBuilder`."""

    #: Waiting for the start tag of the root entity.
    AWAITING_ROOT = "awaiting_root"
    #: The root is found, all events update the entities on the stack.
    BUILDING = "building"
    #: The end of the document is reached, the root entity is complete.
    DONE = "done"


class StackBuilder(EventTarget):
    """Build the entity graph incrementally from tokenizer events.

    The root entity is supplied by the caller. Elements before the root tag
    (e.g. ``<rss>`` around ``<channel>``) are skipped.
    """

    def __init__(
        self,
        root: Entity,
        completion: Callable[[StackBuilder], None] | None = None,
        abort_on_error: bool | None = None,
    ):
        """
        :param root: The entity to fill, its :attr:`~Entity.tag` tells where the document starts.
        :param completion: Called with the builder when the document is parsed.
        :param abort_on_error: Raise tokenizer errors instead of continuing.
            The default is taken from the ``XMLMAPPER_ABORT_ON_ERROR`` setting.
        """
        if not root.tag:
            raise TypeError(f"{root.__class__.__name__}.tag should be set for the root entity.")

        self.root = root
        self.completion = completion
        self.abort_on_error = (
            conf.XMLMAPPER_ABORT_ON_ERROR if abort_on_error is None else abort_on_error
        )
        self.errors: list[Exception] = []
        self.reset()

    def reset(self, root: Entity | None = None):
        """Clear all state, so the builder can be used for another document."""
        if root is not None:
            self.root = root
        self.state = BuilderState.AWAITING_ROOT
        self.stack: list[Entity] = []
        self.text: str | None = None
        self.cdata_block: bytes | None = None
        self.errors = []

    @property
    def current(self) -> Entity | None:
        """The entity at the top of the stack."""
        return self.stack[-1] if self.stack else None

    @property
    def depth(self) -> int:
        return len(self.stack)

    def start_element(self, name: str, attributes: Attributes):
        # Converting to a dict means the last value wins for duplicate attributes.
        attributes = dict(attributes)

        if self.state is BuilderState.AWAITING_ROOT:
            if name == self.root.tag:
                for key, value in attributes.items():
                    self.root.set_attribute(value, None, key)
                self.stack.append(self.root)
                self.state = BuilderState.BUILDING
            else:
                logger.debug("Skipping <%s> before root <%s>", name, self.root.tag)
            return
        elif self.state is not BuilderState.BUILDING:
            return

        current = self.stack[-1]
        child = current.make_child_entity(name)
        if child is not None:
            for key, value in attributes.items():
                child.set_attribute(value, None, key)
            self.stack.append(child)
        else:
            # The element is a scalar of the current entity.
            for key, value in attributes.items():
                current.set_attribute(value, name, key)

    def characters(self, chunk: str):
        if self.state is not BuilderState.BUILDING or is_whitespace(chunk):
            return

        self.text = chunk if self.text is None else self.text + chunk

    def cdata(self, data: bytes):
        if self.state is not BuilderState.BUILDING:
            return

        # Multiple CDATA blocks are not combined, the last one wins.
        self.cdata_block = data

    def end_element(self, name: str):
        if self.state is not BuilderState.BUILDING:
            return

        if len(self.stack) > 1 and self.stack[-1].tag == name:
            closed_entity = self.stack.pop()
            self.stack[-1].set_child_entity(closed_entity, name)
            return

        # The element was a scalar of the current entity.
        # When there is nothing pending, this end tag is silently ignored.
        current = self.stack[-1]
        if self.text is not None:
            current.set_value(self.text, name)
            self.text = None

        if self.cdata_block is not None:
            current.set_data(self.cdata_block, name)
            self.cdata_block = None

    def end_document(self):
        if self.state is BuilderState.DONE:
            logger.debug("Ignoring repeated end of document.")
            return

        if self.state is BuilderState.AWAITING_ROOT:
            logger.warning("Document ended without finding the root <%s> tag.", self.root.tag)

        self.state = BuilderState.DONE
        if self.completion is not None:
            self.completion(self)

    def parse_error(self, exception: Exception):
        self.errors.append(exception)
        if self.abort_on_error:
            raise ExternalParsingError(str(exception)) from exception

        # The parser doesn't unwind the stack, the next events still apply.
        logger.warning("XML parsing error, continuing: %s", exception)

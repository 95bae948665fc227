"""module for component registry
it is used to check if a transport is known to the system.
you have to register new transports here by import them and add to `Registry.mapping`
"""

from typing import Dict, Type

from sqsworker.abc.transport import Transport
from sqsworker.connector.dummy.transport import DummyTransport
from sqsworker.connector.sqs.transport import SqsTransport


class Registry:
    """Component Registry"""

    mapping: Dict[str, Type[Transport]] = {
        "sqs_transport": SqsTransport,
        "dummy_transport": DummyTransport,
    }

    @classmethod
    def get_class(cls, component_type: str) -> Type[Transport]:
        """return the component class for a given type

        Parameters
        ----------
        component_type : str
            the component type

        Returns
        -------
        Type[Transport]
            the registered class

        Raises
        ------
        ValueError
            if the type is not registered
        """
        component_class = cls.mapping.get(component_type)
        if component_class is None:
            raise ValueError(f"Unknown component type: {component_type}")
        return component_class

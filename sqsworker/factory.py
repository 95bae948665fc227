"""This module contains a factory to create transports."""

from typing import Any, Mapping

from sqsworker.abc.component import Component
from sqsworker.factory_error import (
    InvalidConfigSpecificationError,
    InvalidConfigurationError,
    NoTypeSpecifiedError,
    UnknownComponentTypeError,
)
from sqsworker.registry import Registry


class Factory:
    """Create components for sqsworker."""

    @classmethod
    def create(cls, configuration: dict) -> Component | None:
        """Create component."""
        if configuration == {} or configuration is None:
            raise InvalidConfigurationError("The component definition is empty.")
        if not isinstance(configuration, dict):
            raise InvalidConfigSpecificationError()
        if len(configuration) > 1:
            raise InvalidConfigurationError(
                f"Found multiple component definitions ({', '.join(configuration.keys())}),"
                + " but there must be exactly one."
            )
        for component_name, component_configuration_dict in configuration.items():
            if component_configuration_dict is None:
                raise InvalidConfigurationError(
                    f'The definition of component "{component_name}" is empty.'
                )
            if not isinstance(component_configuration_dict, dict):
                raise InvalidConfigSpecificationError(component_name)
            component = cls.get_class(component_name, component_configuration_dict)
            try:
                component_configuration = component.Config(**component_configuration_dict)
            except (TypeError, ValueError) as error:
                raise InvalidConfigurationError(
                    f'Invalid configuration for component "{component_name}": {error}'
                ) from error
            return component(component_name, component_configuration)
        return None

    @staticmethod
    def get_class(name: str, config_: Mapping[str, Any]):
        """gets the class from config

        Parameters
        ----------
        name : str
            The name of the component
        config_ : Mapping[str, Any]
            the configuration with setted `type`

        Returns
        -------
        Transport
            The requested component class

        Raises
        ------
        UnknownComponentTypeError
            if component is not found
        NoTypeSpecifiedError
            if type is not found in config object
        """
        if "type" not in config_:
            raise NoTypeSpecifiedError(name)
        component_type = config_.get("type")
        if component_type not in Registry.mapping:
            raise UnknownComponentTypeError(name, component_type)
        return Registry.get_class(component_type)

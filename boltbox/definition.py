import os
import pathlib
from typing import List, Mapping, Optional

import jinja2
import structlog
import yaml

from boltbox.exceptions.config import NetworkDefinitionError
from boltbox.utils.configuration.node import NodeConfig
from boltbox.utils.configuration.nodes import NodesConfig
from boltbox.utils.configuration.settings import SettingsConfig

log = structlog.get_logger(__name__)


class NetworkDefinition:
    """Interface for a network definition `.yaml` file.

    Takes care of loading the yaml from the given `yaml_path`, and validates
    its contents.

    The file is rendered as a jinja template first, with the process environment
    (or the given `environment`) available as ``env``::

        settings:
          compose:
            file: {{ env.BOLTBOX_COMPOSE_FILE }}
    """

    def __init__(
        self, yaml_path: pathlib.Path, environment: Optional[Mapping[str, str]] = None
    ) -> None:
        self.path = pathlib.Path(yaml_path)
        environment = dict(os.environ if environment is None else environment)

        try:
            with self.path.open() as f:
                yaml_template = jinja2.Template(f.read(), undefined=jinja2.StrictUndefined)
            rendered_yaml = yaml_template.render(env=environment)
            self._loaded = yaml.safe_load(rendered_yaml)
        except OSError as e:
            raise NetworkDefinitionError(f"Cannot read network definition {self.path}: {e}") from e
        except jinja2.TemplateError as e:
            raise NetworkDefinitionError(
                f"Cannot render network definition {self.path}: {e}"
            ) from e
        except yaml.YAMLError as e:
            raise NetworkDefinitionError(f"Invalid YAML in {self.path}: {e}") from e

        if not isinstance(self._loaded, dict):
            raise NetworkDefinitionError(f"Network definition {self.path} must be a mapping")

        self.settings = SettingsConfig(self._loaded)
        self.nodes = NodesConfig(self._loaded)
        log.debug("Loaded network definition", name=self.name, nodes=self.nodes.count)

    @property
    def name(self) -> str:
        """Return the name of the definition file, sans extension."""
        return self.path.stem

    def node_configs(self, **kwargs) -> List[NodeConfig]:
        """Create the configurations of all nodes. `kwargs` override options of every node."""
        return self.nodes.node_configs(self.settings, **kwargs)

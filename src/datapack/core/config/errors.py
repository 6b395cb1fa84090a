# src/datapack/core/config/errors.py
"""
Exceções canônicas da camada de configuração do Datapack.

As exceções aqui definidas representam **violações explícitas** do modelo
de configuração do build (arquivo ausente, formato não suportado, script
duplicado, lista de artefatos vazia, working root irresolúvel ...), e não
erros de execução de scripts.

Invariantes:
    - Todas as exceções de configuração herdam de `ConfigError`
    - `ConfigError` é um `DatapackError` e portanto converte para `ErrorPayload`
    - A mensagem sempre nomeia a invariante violada

Limites explícitos:
    - Não realiza fallback ou recovery
    - Não depende do Orchestrator nem do Script Runner
"""

from datapack.core.errors import CONFIG_INVALID
from datapack.core.exceptions import DatapackError


class ConfigError(DatapackError):
    """
    Exceção base para erros de configuração do build.

    Erros de configuração são fatais e corrigidos pelo usuário editando
    o documento de configuração (ou a chamada de mutação que os originou).
    """

    code = CONFIG_INVALID
    default_hint = "Corrija o documento de configuração do build e tente novamente."


class ConfigFileNotFoundError(ConfigError):
    """O arquivo de configuração não existe no caminho informado."""


class UnsupportedConfigFormatError(ConfigError):
    """
    Formato de arquivo de configuração não suportado.

    Formatos suportados (v1):
        - YAML (.yaml, .yml)
        - JSON (.json)
    """


class InvalidConfigRootTypeError(ConfigError):
    """O conteúdo raiz do documento não é um mapa chave-valor."""


class ConfigTypeConflictError(ConfigError):
    """
    Conflito de tipos durante o deep-merge do override local.

    Exemplo:
        - base:     {"files": {"a.py": {"enabled": true}}}
        - override: {"files": ["a.py"]}
    """


class ConfigSchemaError(ConfigError):
    """Chave desconhecida ou valor com tipo inválido no documento."""


class EmptyArtifactListError(ConfigError):
    """`objects` está vazio: o build não teria nada a produzir."""


class DuplicateArtifactNameError(ConfigError):
    """O mesmo nome de artefato aparece mais de uma vez em `objects`."""


class DuplicateScriptError(ConfigError):
    """O mesmo caminho de script aparece mais de uma vez em `files`."""


class UnknownScriptError(ConfigError):
    """Mutação referencia um script que não está na configuração."""


class WorkingRootError(ConfigError):
    """`workingRoot` vazio ou com placeholder desconhecido."""


class InvalidDataVersionError(ConfigError):
    """String de versão dos dados fora do formato `N(.N)*`."""


class MissingDataVersionError(ConfigError):
    """Nenhuma versão dos dados informada (nem nas opções nem na configuração)."""

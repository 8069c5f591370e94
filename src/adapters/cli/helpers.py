"""
Utilitaires partages pour les commandes CLI de CineMeta.

Ce module fournit :
- suppress_loguru : context manager pour desactiver/reactiver les logs loguru
- with_container : decorateur injectant un container initialise
- initialized_manager : gestionnaire de resolution pret, ferme en sortie
- console : instance Rich Console partagee (reexportee depuis display)
"""

from contextlib import asynccontextmanager, contextmanager
from functools import wraps

from loguru import logger as loguru_logger

from src.container import Container

# Re-export console depuis display pour que tous les modules puissent l'importer ici
from src.adapters.cli.display import console


@contextmanager
def suppress_loguru():
    """
    Context manager pour desactiver les logs loguru pendant l'affichage Rich.

    Usage:
        with suppress_loguru():
            console.print(...)
    """
    loguru_logger.disable("src")
    try:
        yield
    finally:
        loguru_logger.enable("src")


def with_container(requires_db: bool = True):
    """
    Decorateur qui injecte un container initialise en premier argument.

    Args:
        requires_db: Si True (defaut), initialise la base de donnees.

    Usage:
        @with_container()
        async def my_command(container, ...):
            config = container.config()
    """
    def decorator(func):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            container = Container()
            if requires_db:
                container.database.init()
            return await func(container, *args, **kwargs)
        return wrapper
    return decorator


@asynccontextmanager
async def initialized_manager(container: Container):
    """
    Fournit le gestionnaire de resolution initialise.

    Les clients HTTP et le cache disque sont fermes en sortie.

    Usage:
        async with initialized_manager(container) as manager:
            result = await manager.identify(...)
    """
    manager = container.resolution_manager()
    await manager.initialize_all()
    try:
        yield manager
    finally:
        await manager.close_all()
        container.api_cache().close()


__all__ = [
    "console",
    "initialized_manager",
    "suppress_loguru",
    "with_container",
]

from enum import IntEnum
from typing import Annotated, ClassVar

from rich.pretty import pprint

from argbinder import *

__prog__ = "demo"


class Level(IntEnum):
    QUIET = 0
    NORMAL = 1
    LOUD = 2


class Settings:
    threads: Annotated[Int32, argument("threads", "worker count")] = 4
    level: Annotated[Level, argument("level", "output level")] = Level.NORMAL
    name: ClassVar[Annotated[str, argument("name")]] = "world"


@command("greet", "say hello once the settings are applied")
def greet():
    print(f"hello {Settings.name} ({Settings.threads} threads, {Settings.level.name.lower()})")


if __name__ == '__main__':
    pprint(init(report=True, scope=__name__))

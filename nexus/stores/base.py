"""Abstract base class for task stores."""

from abc import ABC, abstractmethod

from nexus.models import Developer, Robot, Task


class TaskStore(ABC):
    @abstractmethod
    def load(self) -> list[Task]: ...

    @abstractmethod
    def save(self, tasks: list[Task]) -> None: ...

    @abstractmethod
    def load_developers(self) -> list[Developer]: ...

    @abstractmethod
    def save_developers(self, developers: list[Developer]) -> None: ...

    @abstractmethod
    def load_robots(self) -> list[Robot]: ...

    @abstractmethod
    def save_robots(self, robots: list[Robot]) -> None: ...

from types import TracebackType
from typing import TYPE_CHECKING, Any, Generator, Self

from boxoffice.platform.logging.loguru_io_config import GeneratorMethod
from boxoffice.platform.logging.loguru_io_utils import reset_call_depth


if TYPE_CHECKING:
    from boxoffice.platform.logging.loguru_io import LoguruIO


class GeneratorWrapper:
    """Forwards the generator protocol while logging every step through LoguruIO."""

    def __init__(self, gen_obj: Generator[Any, Any, Any], custom_logger: 'LoguruIO') -> None:
        self.gen_obj = gen_obj
        self._custom_logger: LoguruIO = custom_logger

    def __iter__(self) -> Self:
        return self

    def _step(self, method: GeneratorMethod, call: Any, *logged: Any, **logged_kw: Any) -> Any:
        try:
            self._custom_logger.log_args_kwargs_content(*logged, yield_method=method, **logged_kw)
            out = call()
            self._custom_logger.log_return_content(out, yield_method=method)
            return out
        except StopIteration as e:
            self._custom_logger.log_return_content(e.value, yield_method=method)
            raise
        finally:
            reset_call_depth()

    def __next__(self) -> Any:
        return self._step(GeneratorMethod.NEXT, lambda: next(self.gen_obj), None)

    def send(self, value: Any) -> Any:
        return self._step(GeneratorMethod.SEND, lambda: self.gen_obj.send(value), value)

    def throw(
        self,
        exc_type: type[BaseException],
        exc_val: BaseException | None = None,
        tb: TracebackType | None = None,
    ) -> Any:
        return self._step(
            GeneratorMethod.THROW,
            lambda: self.gen_obj.throw(exc_type, exc_val, tb),
            exc_type=exc_type,
            exc_val=exc_val,
        )

    def close(self) -> None:
        self.gen_obj.close()

'''Named function registers.

A register is a plain dictionary of functions keyed by their name, so that
configuration can refer to them by a string.
'''

from typing import Callable, Dict, Tuple, Union

from ballotbox.errors import ConfigurationError


def register_functions(register: Dict[str, Callable],
                       name: str,
                       ) -> Tuple[Callable, Callable, Callable]:
    '''Build the functions managing a register.

    :param register: The dictionary to hold the functions.
    :param name: What the functions are, used in error messages.
    :returns: A decorator adding a function to the register under its own
        name, a getter retrieving a function by name, and a constructor
        that also passes custom callables through.
    '''
    def mark(func: Callable) -> Callable:
        register[func.__name__] = func
        return func

    def get(func_name: str) -> Callable:
        try:
            return register[func_name]
        except KeyError:
            raise ConfigurationError(
                f'unknown {name}: {func_name}, available: '
                + ', '.join(register.keys())
            ) from None

    def construct(func_def: Union[str, Callable]) -> Callable:
        return func_def if callable(func_def) else get(func_def)

    return mark, get, construct

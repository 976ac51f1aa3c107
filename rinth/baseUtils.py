import logging
import typing as t

from rinth.logging import ProgressBar

logger = logging.getLogger(__name__)


if t.TYPE_CHECKING:
    import _typeshed as _ts


T = t.TypeVar("T")


def partition(predicate: t.Callable[[T], bool], iterable: t.Iterable[T]):
    """Partition a list based on the results of a :param:`predicate`."""
    trues: t.List[T] = []
    falses: t.List[T] = []
    for item in iterable:
        if predicate(item):
            trues.append(item)
        else:
            falses.append(item)
    return trues, falses


def read_with_progress(
    input: "_ts.SupportsRead[bytes]",
    output: "_ts.SupportsWrite[bytes]",
    size: t.Optional[int] = None,
    blocksize=8192,
    label: t.Optional[str] = "",
    clear_progress=False,
):
    """Copy :param:`input` to :param:`output` one block at a time.

    Without a :param:`size` the progress bar only counts bytes.

    :returns: The number of bytes copied.
    """
    total = 0
    with ProgressBar(
        total=size,
        desc=label,
        leave=(not clear_progress),
        unit_scale=True,
        unit="b",
        delay=0.4,
    ) as bar:
        while True:
            buf = input.read(blocksize)
            if not buf:
                break
            output.write(buf)
            total += len(buf)
            bar.update(len(buf))
    return total

import typing


class MultiArg:
    """Comma separated command line list.

    Items are stripped of surrounding whitespace and quote characters;
    empty items are dropped, so ``--ignore-vm ""`` yields an empty list.
    """

    args: list[str]
    fill: typing.Optional[str]

    def __init__(
        self,
        args: typing.Union[list[str], str, None],
        fill: typing.Optional[str] = None,
        splitchar: str = ",",
    ) -> None:
        if args is None:
            raw: list[str] = []
        elif isinstance(args, list):
            raw = args
        else:
            raw = args.split(splitchar)
        self.args = [item for item in (a.strip().strip("'\"") for a in raw) if item]
        self.fill = fill

    def __len__(self) -> int:
        return self.args.__len__()

    def __iter__(self) -> typing.Iterator[str]:
        return self.args.__iter__()

    def __bool__(self) -> bool:
        return bool(self.args)

    def __getitem__(self, key: int) -> typing.Optional[str]:
        try:
            return self.args.__getitem__(key)
        except IndexError:
            pass
        if self.fill is not None:
            return self.fill
        try:
            return self.args.__getitem__(-1)
        except IndexError:
            return None

    def __repr__(self) -> str:
        return "MultiArg({0!r})".format(self.args)

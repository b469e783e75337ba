"""
log.py – Wire dump of bytes exchanged with the FTDI chip
=========================================================
CommunicationLog collects every transport write (TX) and every completed
poll read (RX) of a session and renders them as a readable flow.

Attach one to a driver (`MpsseDriver(..., log=CommunicationLog())`) when
debugging a device bring-up; leave it out in normal use.
"""

TX = "TX"
RX = "RX"


class CommunicationLog:
    """
    Container of wire transactions with a printable flow.

    Example:
        log = CommunicationLog()
        driver = MpsseDriver(transport, log=log)
        driver.write_gpio_banks()
        log.print_flow()
    """

    def __init__(self):
        self._entries: list[dict] = []

    def add(self, step: str, direction: str, data: bytes | list[int]) -> None:
        """
        Appends an entry.

        Parameters
        ----------
        step : str
            What the bytes are for (e.g. "set GPIO banks").
        direction : str
            TX (host → chip) or RX (chip → host).
        data : bytes | list[int]
            Raw bytes on the wire.
        """
        self._entries.append({
            "step":      step,
            "direction": direction,
            "data":      list(data),
        })

    def clear(self) -> None:
        self._entries.clear()

    def steps(self, direction: str | None = None) -> list[str]:
        """Step labels in order, optionally only one direction."""
        return [e["step"] for e in self._entries
                if direction is None or e["direction"] == direction]

    def print_flow(self, printer=print) -> None:
        """
        Prints the whole exchange, one line per transaction:

          #  dir  bytes  step               data
          1  TX   1      sync: bad opcode   AB
          2  RX   2      sync: echo read 1  FA AB

        Parameters
        ----------
        printer : callable
            Output function, print by default.
        """
        width = max([len("step")] + [len(e["step"]) for e in self._entries])
        printer(f"MPSSE wire flow, {len(self._entries)} transaction(s)")
        printer(f"{'#':>3}  dir  bytes  {'step':<{width}}  data")

        for i, entry in enumerate(self._entries, 1):
            data = " ".join(f"{b:02X}" for b in entry["data"])
            printer(f"{i:>3}  {entry['direction']:<3}  {len(entry['data']):<5}  "
                    f"{entry['step']:<{width}}  {data}")

    def to_list(self) -> list[dict]:
        """Copy of the entries for custom processing."""
        return [dict(e, data=list(e["data"])) for e in self._entries]

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"CommunicationLog({len(self._entries)} entries)"

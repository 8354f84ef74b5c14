# retro_core_harness/transport/bus.py
"""
Transport Layer (単一アドレス空間)

参照用コアが持つ16bitアドレス空間を抽象化し、読み書きを登録済みデバイスへ委譲します。
ハーネスが必要とするのは「1バイト読み出し」だけですが、テストでは結果バイトを
事前に書き込む必要があるため、書き込みとバルクロードも提供します。
"""
from abc import ABC, abstractmethod
from typing import List, Tuple

ADDRESS_SPACE_SIZE = 0x10000


# @intent:responsibility バスに接続されるデバイスの抽象インターフェースを定義します。
class Device(ABC):
    # @intent:responsibility デバイス内オフセットから8bitのデータを読み出します。
    @abstractmethod
    def read(self, offset: int) -> int:
        pass

    # @intent:responsibility デバイス内オフセットへ8bitのデータを書き込みます。
    @abstractmethod
    def write(self, offset: int, data: int) -> None:
        pass


# @intent:responsibility 固定サイズの読み書き可能メモリを提供します。
class RAM(Device):
    # @intent:pre-condition sizeは正の整数である必要があります。
    def __init__(self, size: int):
        if not isinstance(size, int) or size <= 0:
            raise ValueError("RAM size must be a positive integer.")
        self._memory = bytearray(size)
        self._size = size

    def read(self, offset: int) -> int:
        if not 0 <= offset < self._size:
            raise IndexError(f"Address {offset} out of bounds for RAM of size {self._size}.")
        return self._memory[offset]

    def write(self, offset: int, data: int) -> None:
        if not 0 <= offset < self._size:
            raise IndexError(f"Address {offset} out of bounds for RAM of size {self._size}.")
        if not 0 <= data <= 0xFF:
            raise ValueError(f"Data {data} is not an 8-bit value.")
        self._memory[offset] = data

    def get_size(self) -> int:
        return self._size


# @intent:responsibility アドレス空間を管理し、アクセスを適切なデバイスへディスパッチします。
class MemoryBus:
    """
    16bitアドレス空間のメモリバス。

    デバイスは (開始アドレス, 終了アドレス) の範囲で登録します。範囲がデバイスサイズより
    大きい場合はミラーとして扱い、オフセットはデバイスサイズで折り返されます
    （例: 2KBの内部RAMを $0000-$1FFF にマップする）。
    """
    def __init__(self):
        # (start_address, end_address, device)
        self._memory_map: List[Tuple[int, int, Device]] = []

    # @intent:responsibility 64KB全域を1つのRAMで埋めたバスを生成します。
    @classmethod
    def with_flat_ram(cls) -> "MemoryBus":
        bus = cls()
        bus.register_device(0x0000, ADDRESS_SPACE_SIZE - 1, RAM(ADDRESS_SPACE_SIZE))
        return bus

    # @intent:pre-condition 0 <= start_address <= end_address < 0x10000
    # @intent:rationale 範囲の重複チェックは行いません。先に登録されたデバイスが優先されます。
    def register_device(self, start_address: int, end_address: int, device: Device) -> None:
        if not (0 <= start_address <= end_address < ADDRESS_SPACE_SIZE):
            raise ValueError(
                f"Invalid address range {start_address:#06x}-{end_address:#06x} for a 16-bit address space."
            )
        if not isinstance(device, Device):
            raise TypeError("Device must be an instance of a class derived from Device.")
        if isinstance(device, RAM) and device.get_size() > end_address - start_address + 1:
            raise ValueError(
                f"Registered RAM device size ({device.get_size()} bytes) exceeds "
                f"the specified address range size ({end_address - start_address + 1} bytes)."
            )
        self._memory_map.append((start_address, end_address, device))

    # @intent:post-condition デバイスが見つからなかった場合、IndexErrorを発生させます。
    def _find_device(self, address: int) -> Tuple[Device, int]:
        for start, end, device in self._memory_map:
            if start <= address <= end:
                offset = address - start
                if isinstance(device, RAM):
                    offset %= device.get_size()
                return device, offset
        raise IndexError(f"Address {address:#06x} not mapped to any device.")

    def read(self, address: int) -> int:
        device, offset = self._find_device(address)
        return device.read(offset)

    def write(self, address: int, data: int) -> None:
        device, offset = self._find_device(address)
        device.write(offset, data)

    # @intent:responsibility バイト列を指定アドレスから連続して書き込みます。
    def load(self, address: int, data: bytes) -> None:
        for i, byte in enumerate(data):
            self.write(address + i, byte)

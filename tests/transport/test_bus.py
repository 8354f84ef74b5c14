# tests/transport/test_bus.py
"""
retro_core_harness.transport.busモジュールの単体テスト。
"""
import pytest
from retro_core_harness.transport.bus import MemoryBus, Device, RAM

# @intent:test_suite 参照コア用アドレス空間とデバイスの基本的な機能とエラーハンドリングを検証します。

class TestRAM:
    """
    RAMデバイスの単体テスト。
    """
    # @intent:test_case_init RAMクラスが正しいサイズで初期化されることを検証します。
    def test_ram_init_valid_size(self):
        ram = RAM(16)
        assert ram.get_size() == 16
        assert all(ram.read(i) == 0 for i in range(16)) # 全て0で初期化される

    # @intent:test_case_init 無効なサイズでRAMを初期化するとValueErrorが発生することを検証します。
    def test_ram_init_invalid_size(self):
        with pytest.raises(ValueError, match="RAM size must be a positive integer."):
            RAM(0)
        with pytest.raises(ValueError, match="RAM size must be a positive integer."):
            RAM(1.5) # float

    # @intent:test_case_oob 境界外アドレスへのアクセス時にIndexErrorが発生することを検証します。
    def test_ram_read_write_out_of_bounds(self):
        ram = RAM(4)
        with pytest.raises(IndexError, match="Address 4 out of bounds for RAM of size 4."):
            ram.read(4)
        with pytest.raises(IndexError):
            ram.write(-1, 0x00)

    # @intent:test_case_data 8bitを超える値の書き込みでValueErrorが発生することを検証します。
    def test_ram_write_invalid_data(self):
        ram = RAM(1)
        with pytest.raises(ValueError, match="Data 256 is not an 8-bit value."):
            ram.write(0, 0x100)

class TestMemoryBus:
    """
    MemoryBusの単体テスト。
    """
    # @intent:test_case_register デバイスがバスに登録され、オフセット変換されてアクセスできることを検証します。
    def test_register_and_access_device(self):
        bus = MemoryBus()
        ram1 = RAM(16)
        ram2 = RAM(16)
        bus.register_device(0x0000, 0x000F, ram1)
        bus.register_device(0x0010, 0x001F, ram2)

        bus.write(0x001A, 0xBB)
        assert bus.read(0x001A) == 0xBB
        assert ram2.read(0x0A) == 0xBB

    # @intent:test_case_mirror 範囲がデバイスより大きい場合にミラーとして折り返されることを検証します。
    def test_mirrored_ram(self):
        bus = MemoryBus()
        bus.register_device(0x0000, 0x1FFF, RAM(0x0800))
        bus.write(0x00F8, 0x01)
        assert bus.read(0x08F8) == 0x01
        assert bus.read(0x18F8) == 0x01

    # @intent:test_case_unmapped マップされていないアドレスへのアクセス時にIndexErrorが発生することを検証します。
    def test_access_unmapped_address(self):
        bus = MemoryBus()
        bus.register_device(0x0000, 0x00FF, RAM(0x100))
        with pytest.raises(IndexError, match="not mapped to any device"):
            bus.read(0x8000)

    # @intent:test_case_invalid_range 16bit空間外の範囲や不正なデバイスの登録を拒否することを検証します。
    def test_register_invalid(self):
        bus = MemoryBus()
        with pytest.raises(ValueError):
            bus.register_device(0x0000, 0x10000, RAM(0x10001))
        with pytest.raises(ValueError):
            bus.register_device(0x0000, 0x000F, RAM(32))
        with pytest.raises(TypeError):
            bus.register_device(0x0000, 0x000F, object())

    # @intent:test_case_load バイト列のロードと64KBフラットRAMの生成を検証します。
    def test_flat_ram_and_load(self):
        bus = MemoryBus.with_flat_ram()
        bus.load(0xC000, bytes([0x4C, 0xF5, 0xC5]))
        assert [bus.read(0xC000 + i) for i in range(3)] == [0x4C, 0xF5, 0xC5]
        assert bus.read(0xFFFF) == 0x00

    # @intent:test_case_custom_device Device抽象クラスを実装した任意のデバイスを登録できることを検証します。
    def test_custom_device(self):
        class ConstantDevice(Device):
            def read(self, offset):
                return 0x42
            def write(self, offset, data):
                pass

        bus = MemoryBus()
        bus.register_device(0x4000, 0x401F, ConstantDevice())
        assert bus.read(0x4015) == 0x42

MEMORY_SIZE      = 0x1000
ROM_BASE         = 0x200                # Programs are loaded and started here
GP_REGS          = 0x10
FLAG_REG         = 0x0F                 # VF carries carry/borrow/collision
STACK_SIZE       = 0x10
TIMER_INIT       = 0x40

DISPLAY_WIDTH    = 0x40
DISPLAY_HEIGHT   = 0x20
KEYS             = 0x10

WORD_SIZE        = 2                    # Instructions are big-endian 16-bit words
HALT_WORD        = 0x0000               # Unprogrammed memory ends the program

FONT_BASE        = 0x050
GLYPH_SIZE       = 5

# 4x5 hexadecimal glyphs 0-F, one byte per row, high nibble used
FONT = [
    0xF0, 0x90, 0x90, 0x90, 0xF0,   # 0
    0x20, 0x60, 0x20, 0x20, 0x70,   # 1
    0xF0, 0x10, 0xF0, 0x80, 0xF0,   # 2
    0xF0, 0x10, 0xF0, 0x10, 0xF0,   # 3
    0x90, 0x90, 0xF0, 0x10, 0x10,   # 4
    0xF0, 0x80, 0xF0, 0x10, 0xF0,   # 5
    0xF0, 0x80, 0xF0, 0x90, 0xF0,   # 6
    0xF0, 0x10, 0x20, 0x40, 0x40,   # 7
    0xF0, 0x90, 0xF0, 0x90, 0xF0,   # 8
    0xF0, 0x90, 0xF0, 0x10, 0xF0,   # 9
    0xF0, 0x90, 0xF0, 0x90, 0x90,   # A
    0xE0, 0x90, 0xE0, 0x90, 0xE0,   # B
    0xF0, 0x80, 0x80, 0x80, 0xF0,   # C
    0xE0, 0x90, 0x90, 0x90, 0xE0,   # D
    0xF0, 0x80, 0xF0, 0x80, 0xF0,   # E
    0xF0, 0x80, 0xF0, 0x80, 0x80    # F
]

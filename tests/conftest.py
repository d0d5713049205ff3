import pytest

from lc3vm import CPU, BufferedConsole, Memory, PC_START, run, step


class Machine:
    """CPU, memory and buffered console wired together for tests."""

    def __init__(self, input_text=""):
        self.console = BufferedConsole(input_text)
        self.memory = Memory(console=self.console)
        self.cpu = CPU()

    def load(self, words, origin=PC_START):
        self.memory.load_words(origin, words)

    def step(self):
        return step(self.cpu, self.memory, self.console)

    def run(self, max_steps=10000):
        return run(self.cpu, self.memory, self.console, max_steps=max_steps)

    @property
    def regs(self):
        return self.cpu.registers

    @property
    def output(self):
        return self.console.get_output()


@pytest.fixture
def machine():
    return Machine()


@pytest.fixture
def make_machine():
    return Machine

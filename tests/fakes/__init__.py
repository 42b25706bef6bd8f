from tests.fakes.fake_id_generator import FixedIdGenerator, SequentialIdGenerator

__all__ = ["FixedIdGenerator", "SequentialIdGenerator"]

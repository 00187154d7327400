# examples/demo_hull.py
from loguru import logger

from cgpoly import Polyhedron, Callback


class Counter(Callback):
    def __init__(self):
        self.created = 0
        self.deleted = 0

    def face_was_created(self, face):
        self.created += 1

    def face_will_be_deleted(self, face):
        self.deleted += 1


if __name__ == "__main__":
    logger.enable("cgpoly")

    raw = [
        (0,0,0), (1,0,0), (1,1,0), (0,1,0),
        (0,0,1), (1,0,1), (1,1,1), (0,1,1),
        (0.5,0.5,0.5), (0.2,0.8,0.3), (0.8,0.2,0.7)
    ]
    counter = Counter()
    hull = Polyhedron(raw, callback=counter)
    print("HULL:", hull.validate())

    hull.remove_vertex_at((0, 0, 0), counter)
    print("AFTER REMOVAL:", hull.validate())

    other = Polyhedron([(x + 0.5, y + 0.5, z + 0.5) for x, y, z in raw[:8]])
    hull.merge(other, counter)
    print("AFTER MERGE:", hull.validate())
    print(f"Faces created: {counter.created}, deleted: {counter.deleted}")

    with open("hull.off", "w", encoding="utf-8") as f:
        f.write(hull.to_off())
    print("Wrote hull.off — можна глянути в MeshLab/ParaView.")

import bisect
import logging

from hit_objects import BeatmapDifficulty, Chart, ObjectKind, Ruleset, TimedObject

logger = logging.getLogger(__name__)

# hit object type bits
OBJ_CIRCLE = 1 << 0
OBJ_SLIDER = 1 << 1
OBJ_SPINNER = 1 << 3
OBJ_HOLD = 1 << 7


def string_to_int(str):
    return int(float(str))


# Parser Class that can be used on other class.


class parser:
    """
    Reads the parts of a .osu file the rating needs: difficulty settings,
    timing points and hit objects.
    https://osu.ppy.sh/wiki/en/Client/File_formats/osu_%28file_format%29
    """

    def __init__(self, file_path):
        self.file_path = file_path
        self.mode = Ruleset.OSU
        self.title = ""
        self.version = ""
        self.hp = 5.0
        self.cs = 5.0
        self.od = 5.0
        self.ar = None
        self.slider_multiplier = 1.4
        # (time, beat_length) for uninherited points, (time, velocity) for inherited ones
        self.red_points = []
        self.green_points = []
        self.objects = []

    def process(self):
        section = None
        with open(self.file_path, "r", encoding='utf-8-sig') as f:
            for line in f:
                line = line.strip()
                if not line or line.startswith("//"):
                    continue
                if line.startswith("[") and line.endswith("]"):
                    section = line[1:-1]
                    continue

                if section in ("General", "Metadata", "Difficulty"):
                    self.read_property(section, line)
                elif section == "TimingPoints":
                    self.read_timing_point(line)
                elif section == "HitObjects":
                    self.parse_hit_object(line)

        logger.debug("parsed %s: %d objects, %d timing points",
                     self.file_path, len(self.objects), len(self.red_points) + len(self.green_points))

    def read_property(self, section, line):
        if ":" not in line:
            return
        key, value = (part.strip() for part in line.split(":", 1))
        if section == "General" and key == "Mode":
            self.mode = Ruleset(string_to_int(value))
        elif section == "Metadata" and key == "Title":
            self.title = value
        elif section == "Metadata" and key == "Version":
            self.version = value
        elif key == "HPDrainRate":
            self.hp = float(value)
        elif key == "CircleSize":
            self.cs = float(value)
        elif key == "OverallDifficulty":
            self.od = float(value)
        elif key == "ApproachRate":
            self.ar = float(value)
        elif key == "SliderMultiplier":
            self.slider_multiplier = float(value)

    def read_timing_point(self, line):
        params = line.split(",")
        offset = float(params[0])
        # mpb = 60000 / bpm, negative on inherited points (-100 / velocity)
        mpb = float(params[1])
        uninherited = string_to_int(params[6]) == 1 if len(params) > 6 else mpb > 0
        if uninherited:
            self.red_points.append((offset, mpb))
        elif mpb < 0:
            self.green_points.append((offset, min(max(-100.0 / mpb, 0.1), 10.0)))

    def timing_at(self, time):
        """(beat_length, slider_velocity) in effect at `time`."""
        beat_length = 500.0
        if self.red_points:
            times = [t for t, _ in self.red_points]
            idx = max(bisect.bisect_right(times, time) - 1, 0)
            beat_length = self.red_points[idx][1]
        velocity = 1.0
        if self.green_points:
            times = [t for t, _ in self.green_points]
            idx = bisect.bisect_right(times, time) - 1
            if idx >= 0:
                velocity = self.green_points[idx][1]
        return beat_length, velocity

    # Helper for the [HitObjects] section.
    # x,y,time,type,hitSound,objectParams,hitSample
    def parse_hit_object(self, object_line):
        params = object_line.split(",")
        x = float(params[0])
        y = float(params[1])
        start = string_to_int(params[2])
        note_type = int(params[3])
        beat_length, velocity = self.timing_at(start)

        kind = ObjectKind.NORMAL
        end = start
        repeats = 0
        if note_type & OBJ_SLIDER:
            kind = ObjectKind.SPANNING
            slides = int(params[6])
            length = float(params[7])
            span = length / (self.slider_multiplier * 100 * velocity) * beat_length
            end = start + span * slides
            repeats = slides - 1
        elif note_type & OBJ_SPINNER:
            kind = ObjectKind.NON_INTERACTIVE
            end = string_to_int(params[5])
        elif note_type & OBJ_HOLD:
            kind = ObjectKind.SPANNING
            end = string_to_int(params[5].split(":")[0])

        self.objects.append(TimedObject(
            start_time=start,
            end_time=max(end, start),
            x=x,
            y=y,
            kind=kind,
            repeat_count=repeats,
            beat_length=beat_length,
            slider_velocity=velocity,
        ))

    def get_chart(self):
        difficulty = BeatmapDifficulty(
            approach_rate=self.od if self.ar is None else self.ar,
            overall_difficulty=self.od,
            circle_size=self.cs,
            drain_rate=self.hp,
        )
        title = f"{self.title} [{self.version}]" if self.version else self.title
        objects = tuple(sorted(self.objects, key=lambda o: o.start_time))
        return Chart(objects=objects, difficulty=difficulty, ruleset=self.mode, title=title)

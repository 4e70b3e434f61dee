import argparse
import json
import logging
import sys
from pathlib import Path

import pandas as pd

import algorithm
import osu_file_parser as osu_parser
import performance
from attributes import (
    DIFFICULTY_VERSION,
    ManiaDifficultyAttributes,
    OsuDifficultyAttributes,
    TaikoDifficultyAttributes,
)
from config import load_config
from hit_objects import Ruleset
from mods import Mod, ModError, ModifierSet
from performance import HitResult, ScoreInfo
from skills import OSU_SKILLS, TAIKO_READING

logger = logging.getLogger("srcalc")


def resource_path(relative_path: str) -> Path:
    base_path = Path(getattr(sys, '_MEIPASS', Path(__file__).parent))
    return base_path / relative_path


def credit_string():
    build_time_file = resource_path("build_time")
    if build_time_file.exists():
        version_str = f" (build: {build_time_file.read_text(encoding='utf-8').strip()})"
    else:
        version_str = ""
    return f"srcalc, difficulty version {DIFFICULTY_VERSION}{version_str}"


def rate_folder(folder_path, mods, breakdown=False):
    rows = []
    for file in sorted(Path(folder_path).iterdir()):
        if file.suffix != ".osu":
            continue
        try:
            p_obj = osu_parser.parser(file)
            p_obj.process()
            chart = p_obj.get_chart()
        except (OSError, ValueError, IndexError) as exception:
            logger.error("skipping %s: %s", file.name, exception)
            continue

        try:
            attributes = algorithm.calculate_chart(chart, mods)
        except algorithm.UnsupportedRulesetError as exception:
            logger.warning("skipping %s: %s", file.name, exception)
            continue

        row = {
            'file': file.stem,
            'ruleset': chart.ruleset.name.lower(),
            'mods': "".join(attributes.mods) or "NM",
            'stars': attributes.star_rating,
            'reading': attributes.reading_difficulty,
        }
        if isinstance(attributes, OsuDifficultyAttributes):
            row.update({
                'aim': attributes.aim_difficulty,
                'tapping': attributes.tapping_difficulty,
                'rhythm': attributes.rhythm_difficulty,
                'ar': attributes.approach_rate,
                'od': attributes.overall_difficulty,
            })
        row['max_combo'] = attributes.max_combo
        rows.append(row)

        if breakdown:
            definitions = OSU_SKILLS if chart.ruleset is Ruleset.OSU else (TAIKO_READING,)
            table = algorithm.strain_breakdown(chart, mods, definitions)
            table.to_csv(file.with_suffix(".strains.csv"), index=False)
    return pd.DataFrame(rows)


def print_table(df, output_format):
    if output_format == "csv":
        print(df.to_csv(index=False), end="")
    elif output_format == "json":
        print(df.to_json(orient="records", indent=2))
    else:
        print(df.to_string(index=False, float_format=lambda v: f"{v:.4f}"))


def run_rate(args, config):
    folder_path = args.folder_path
    if not folder_path.is_dir():
        print(f"Error: {folder_path} is not a valid directory.")
        sys.exit(1)

    mods = ModifierSet.from_acronyms(args.mods if args.mods is not None else config.mods,
                                     args.speed_change if args.speed_change is not None else config.speed_change)
    output_format = args.format or config.output_format

    if output_format == "table":
        print(credit_string())
        print(f"Dir: {folder_path}, Mods: {''.join(mods.acronyms) or 'NM'}\n")

    while True:
        print_table(rate_folder(folder_path, mods, args.breakdown), output_format)
        if not args.repeat:
            return
        try:
            input("SR calculation completed. Press Enter to run again or 'Ctrl+C' to exit.")
            print()
        except KeyboardInterrupt:
            sys.exit(0)


def run_perf(args, config):
    mods = ModifierSet.from_acronyms(args.mods if args.mods is not None else config.mods,
                                     args.speed_change if args.speed_change is not None else config.speed_change)
    statistics = {
        HitResult.PERFECT: args.perfect,
        HitResult.GREAT: args.great,
        HitResult.GOOD: args.good,
        HitResult.OK: args.ok,
        HitResult.MEH: args.meh,
        HitResult.MISS: args.miss,
    }
    if args.ruleset == "taiko":
        attributes = TaikoDifficultyAttributes(
            star_rating=args.stars,
            great_hit_window=args.great_window,
            mono_stamina_factor=args.mono_stamina_factor,
            mods=mods.acronyms,
        )
        chart_ruleset = Ruleset.OSU if args.convert else Ruleset.TAIKO
    else:
        attributes = ManiaDifficultyAttributes(
            star_rating=args.stars,
            great_hit_window=args.great_window,
            strain_factor=args.strain_factor,
            mods=mods.acronyms,
        )
        chart_ruleset = Ruleset.MANIA

    score = ScoreInfo(statistics=statistics, mods=mods, beatmap_ruleset=chart_ruleset)
    result = performance.calculate(score, attributes)
    print(json.dumps(result.model_dump(), indent=2))


def build_parser():
    parser = argparse.ArgumentParser(description="Star rating and performance calculator for osu! charts.")
    parser.add_argument("--version", "-V", action="store_true", help="Show difficulty version and exit.")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log debug output to stderr.")
    subparsers = parser.add_subparsers(dest="command")

    mod_help = f"Mod acronyms, e.g. HDDT. Known: {', '.join(m.value for m in Mod)}."

    rate = subparsers.add_parser("rate", help="Rate every .osu file in a folder.")
    rate.add_argument("folder_path", nargs='?', default=Path.cwd(), type=Path,
                      help='Path to the folder containing .osu files.')
    rate.add_argument("--mods", "-M", type=str, default=None, help=mod_help)
    rate.add_argument("--speed-change", type=float, default=None, help="Custom rate for DT/NC/HT/DC.")
    rate.add_argument("--format", choices=["table", "csv", "json"], default=None)
    rate.add_argument("--breakdown", action="store_true",
                      help="Also write per-object strains next to each chart as <name>.strains.csv.")
    rate.add_argument("--repeat", action="store_true", help="Prompt to rerun after each pass.")

    perf = subparsers.add_parser("perf", help="Performance value of one played result.")
    perf.add_argument("--ruleset", choices=["taiko", "mania"], required=True)
    perf.add_argument("--stars", type=float, required=True)
    perf.add_argument("--great-window", type=float, default=0.0, help="Great hit window in ms at the played rate.")
    perf.add_argument("--mono-stamina-factor", type=float, default=0.0)
    perf.add_argument("--strain-factor", type=float, default=0.0)
    perf.add_argument("--convert", action="store_true", help="The chart was converted from another ruleset.")
    perf.add_argument("--mods", "-M", type=str, default=None, help=mod_help)
    perf.add_argument("--speed-change", type=float, default=None)
    for name in ("perfect", "great", "good", "ok", "meh", "miss"):
        perf.add_argument(f"--{name}", type=int, default=0)
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.version:
        print(credit_string())
        sys.exit(0)

    try:
        config = load_config()
    except ValueError as exception:
        print(f"Error: {exception}")
        sys.exit(1)

    logging.basicConfig(level=logging.DEBUG if args.verbose else config.log_level,
                        format="%(levelname)s %(name)s: %(message)s")

    try:
        if args.command == "perf":
            run_perf(args, config)
        elif args.command == "rate":
            run_rate(args, config)
        else:
            parser.print_help()
    except ModError as exception:
        print(f"Error: {exception}")
        sys.exit(1)


if __name__ == "__main__":
    main()

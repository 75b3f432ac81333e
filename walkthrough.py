import sys

import pandas as pd

from least_squares import (
    DEFAULT_METHOD,
    METHODS,
    Samples,
    fit,
    fit_table,
    reference_fit,
    residual_sum_of_squares,
    summarise,
    FittedModel,
)

# hours studied vs exam score for a small class
STUDENTS = pd.DataFrame({
    "hours_studied": [1.0, 2.0, 2.5, 3.0, 3.5, 4.0, 4.5, 5.0, 5.5, 6.0,
                      6.5, 7.0, 7.5, 8.0, 8.5, 9.0, 9.5, 10.0],
    "exam_score":    [52.0, 55.0, 61.0, 58.0, 63.0, 66.0, 64.0, 69.0, 71.0, 70.0,
                      74.0, 77.0, 76.0, 79.0, 84.0, 88.0, 91.0, 95.0],
})
SCORE_CUTOFF = 80
SLOPE_OFFSETS = [-0.1, 0.1, 0.2]

def parse_args():
    args = sys.argv[1:]
    method = args[0] if args else DEFAULT_METHOD
    if method not in METHODS:
        raise SystemExit(f"unknown method {method!r}, choose from {sorted(METHODS)}")
    return method

def prepare(df: pd.DataFrame, cutoff: float = SCORE_CUTOFF) -> Samples:
    """Drop the high scorers, then take hours as predictor and score as outcome."""
    kept = df[df["exam_score"] < cutoff]
    print(f"Kept {len(kept)} of {len(df)} students with exam_score < {cutoff}")
    return Samples.from_frame(kept, "hours_studied", "exam_score")

def compare_slopes(model: FittedModel, samples: Samples, offsets=SLOPE_OFFSETS) -> pd.DataFrame:
    """RSS of the fitted line next to lines whose slope is nudged off the optimum."""
    rows = [("fitted", model.slope, residual_sum_of_squares(model, samples))]
    for off in offsets:
        nudged = FittedModel(
            intercept=model.intercept,
            slope=model.slope + off,
            stats=model.stats,
            method=model.method,
        )
        rows.append((f"{off:+.1f}", nudged.slope, residual_sum_of_squares(nudged, samples)))

    return pd.DataFrame(rows, columns=["line", "slope", "rss"])

def main(method: str = DEFAULT_METHOD):
    samples = prepare(STUDENTS)

    # summary stats
    print("\nSummary statistics:")
    summarise(samples, method).show()

    # slope & intercept by hand
    model = fit(samples, method)
    print("\nManual estimate:")
    model.show()

    # predictions and residuals
    print("\nFitted values:")
    print(fit_table(model, samples).to_string(float_format='%.4f'))

    # compare with statsmodels
    ref = reference_fit(samples)
    print("\nstatsmodels OLS:")
    ref.show()
    print(f"max coefficient difference: {max(abs(ref.intercept - model.intercept), abs(ref.slope - model.slope)):.3e}")

    print("\nWrong slopes fit worse:")
    print(compare_slopes(model, samples).to_string(float_format='%.4f', index=False))

    return model

if __name__ == "__main__":
    main(parse_args())

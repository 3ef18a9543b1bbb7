"""Synthetic irregular traffic/weather log: duplicates, scattered gaps, a long outage and a leap day."""
import argparse, os
import numpy as np, pandas as pd

ap = argparse.ArgumentParser()
ap.add_argument("--out", default="data/raw/traffic_log.csv")
ap.add_argument("--seed", type=int, default=7)
args = ap.parse_args()

rng = np.random.default_rng(args.seed)
idx = pd.date_range("2012-10-02 09:00:00", "2016-12-31 23:00:00", freq="h")
hour = idx.hour.to_numpy()
df = pd.DataFrame({
  "date_time": idx,
  "temp": 280 + 10*np.sin(2*np.pi*idx.dayofyear.to_numpy()/365.25) + rng.normal(0, 2, len(idx)),
  "rain_1h": rng.exponential(0.2, len(idx)).round(2),
  "clouds_all": rng.integers(0, 100, len(idx)),
  "traffic_volume": (3000 + 2500*np.sin(np.pi*(hour-6)/12).clip(0) + rng.normal(0, 200, len(idx))).round(),
  "holiday": "None",
  "weather_main": rng.choice(["Clear", "Clouds", "Rain", "Mist", "Snow"], len(idx)),
})

# long outage, kept clear of the first year so the historical stage has sources
outage = (df["date_time"] > "2014-08-08 01:00:00") & (df["date_time"] < "2015-06-11 20:00:00")
# every 97th hour after the first year; 97 divides no whole number of years in hours
after_first_year = df["date_time"] >= "2013-10-03 00:00:00"
scattered = after_first_year & (np.arange(len(df)) % 97 == 0)
leap_day = (df["date_time"].dt.month == 2) & (df["date_time"].dt.day == 29)
df = df[~outage & ~scattered & ~leap_day]

# exact duplicates and conflicting duplicates
dups = df.sample(200, random_state=args.seed)
conflicts = df.sample(50, random_state=args.seed + 1).assign(weather_main="Fog")
df = pd.concat([df, dups, conflicts]).sort_values("date_time", kind="stable")

os.makedirs(os.path.dirname(args.out), exist_ok=True)
df["date_time"] = df["date_time"].dt.strftime("%Y-%m-%d %H:%M:%S")
df.to_csv(args.out, index=False)
print(f"Wrote {args.out} ({len(df)} rows)")

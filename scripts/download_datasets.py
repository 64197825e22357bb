"""Download the shopping and news datasets to the local cache."""

import argparse

from nnet_cv.data import DATASETS, download_dataset


def main() -> None:
    parser = argparse.ArgumentParser(description="Download datasets")
    parser.add_argument("names", nargs="*", default=sorted(DATASETS), choices=sorted(DATASETS))
    parser.add_argument("--cache-dir", default="data")
    args = parser.parse_args()

    for name in args.names:
        path = download_dataset(name, args.cache_dir)
        print(path)


if __name__ == "__main__":
    main()
